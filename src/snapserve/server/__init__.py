"""Snapserve server - readiness gate, render pipeline and snapshot cache."""

from snapserve.server.app import create_app
from snapserve.server.builder import BundleBuilder
from snapserve.server.gate import ActiveBundle, ReadinessGate
from snapserve.server.lifecycle import ServerController
from snapserve.server.pipeline import RenderPipeline
from snapserve.server.static import StaticMatch, StaticResolver

__all__ = [
    "ActiveBundle",
    "BundleBuilder",
    "ReadinessGate",
    "RenderPipeline",
    "ServerController",
    "StaticMatch",
    "StaticResolver",
    "create_app",
]
