"""
Local cache for asset values and version markers.

Stores owner-scoped values on the device with atomic per-key writes.
"""

from .cache import DEFAULT_CONTENT_TYPE, CachedBlob, LocalCache

__all__ = [
    "CachedBlob",
    "DEFAULT_CONTENT_TYPE",
    "LocalCache",
]
