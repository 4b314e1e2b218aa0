"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
For configurable values, see models.py.
"""

# =============================================================================
# Render Fragment Cache
# =============================================================================

RENDER_CACHE_MAX = 1000
"""Maximum memoized component fragments per renderer."""

RENDER_CACHE_MAX_AGE_SEC = 60 * 15
"""Lifetime of a memoized fragment (15 minutes)."""

# =============================================================================
# Static Snapshots
# =============================================================================

STATIC_ROUTES: tuple[str, ...] = ("/", "/all")
"""Route patterns whose output never varies per request."""

STATIC_DIR = "static"
"""Snapshot subtree under the output directory."""

DEFAULT_SLUG = "home"
"""Snapshot slug for the root path."""

# =============================================================================
# Bundle Layout
# =============================================================================

SERVER_BUNDLE_FILE = "ssr-server-bundle.json"
CLIENT_MANIFEST_FILE = "ssr-client-manifest.json"

# =============================================================================
# Streaming
# =============================================================================

STREAM_HIGH_WATER_MARK = 16 * 1024
"""Rendered text is flushed to the response once this many bytes accumulate."""

# =============================================================================
# Protocol/Validation Constants
# =============================================================================

PORT_MIN = 0
PORT_MAX = 65535
"""Valid port range."""
