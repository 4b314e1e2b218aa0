"""Compiled application bundles."""

from snapserve.bundle.loader import load_bundle
from snapserve.bundle.models import Bundle, ClientManifest, ComponentDef, ServerBundle

__all__ = [
    "Bundle",
    "ClientManifest",
    "ComponentDef",
    "ServerBundle",
    "load_bundle",
]
