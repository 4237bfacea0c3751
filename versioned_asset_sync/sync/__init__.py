"""
Synchronization between the local cache and remote versioned storage.

- VersionReconciler: pulls newer remote versions into the cache
- UploadPipeline: saves locally, then pushes a new remote version
- SignedAccessProvider: short-lived read URLs for streaming
"""

from .locks import KeyLocks
from .outcomes import (
    AssetKind,
    CancellationToken,
    SyncOutcome,
    SyncState,
    UploadOutcome,
    downgrade,
    downgrade_upload,
)
from .reconciler import VersionReconciler
from .signed_access import SignedAccessProvider
from .upload import UploadPipeline, infer_content_type, safe_filename

__all__ = [
    "AssetKind",
    "CancellationToken",
    "KeyLocks",
    "SignedAccessProvider",
    "SyncOutcome",
    "SyncState",
    "UploadOutcome",
    "UploadPipeline",
    "VersionReconciler",
    "downgrade",
    "downgrade_upload",
    "infer_content_type",
    "safe_filename",
]
