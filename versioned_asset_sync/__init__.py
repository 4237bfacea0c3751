"""
Versioned Asset Sync

Local-first storage for user-owned media and JSON documents with
versioned cloud backup.

Provides:
- On-device cache that is always readable offline
- Immutable remote versions, one folder per asset key
- Change detection by version marker, without downloading content
- Legacy fixed-path mirror for readers that predate versioning
- Short-lived signed URLs for streaming large media

Usage:

    >>> from versioned_asset_sync import AssetStore, AssetSyncConfig, AssetKind
    >>> from versioned_asset_sync import StaticIdentityProvider, menu_layout_key
    >>> identity = StaticIdentityProvider.for_owner("user-123")
    >>> async with await AssetStore.create(AssetSyncConfig.from_env(), identity) as store:
    ...     # Show what is cached right away
    ...     layout = await store.load_local("user-123", menu_layout_key("en"), AssetKind.JSON)
    ...
    ...     # Then pick up edits made on other devices
    ...     outcome = await store.load_and_reconcile(
    ...         "user-123", menu_layout_key("en"), AssetKind.JSON
    ...     )
    ...     if outcome.updated:
    ...         layout = outcome.data

Storage Selection:

    # Azure Blob Storage (default)
    ASSET_SYNC_STORAGE_TYPE=azure ASSET_SYNC_AZURE_ACCOUNT_URL=...

    # In-process storage for development
    ASSET_SYNC_STORAGE_TYPE=memory
"""

# Facade and configuration
from .assets import AssetStore, LatestVersion
from .config import AssetSyncConfig

# Exceptions
from .exceptions import (
    AssetSyncError,
    AuthenticationError,
    LocalStorageError,
    RemoteConflictError,
    RemoteConnectionError,
    RemoteNotFoundError,
    RemotePermissionError,
    RemoteStorageError,
    ValidationError,
)

# Identity module
from .identity import (
    ConfigFileIdentityProvider,
    IdentityProvider,
    StaticIdentityProvider,
    UserIdentity,
)

# Well-known keys
from .keys import AssetKeys, background_page_key, menu_layout_key

# Local cache
from .local import CachedBlob, LocalCache

# Remote storage
from .remote import (
    FailureKind,
    InMemoryBackend,
    LegacyMirror,
    ObjectStorageBackend,
    RemoteResult,
    RemoteVersionedStore,
    VersionClock,
    VersionId,
    create_backend,
)
from .remote.azure_blob import AzureBlobBackend, AzureBlobConfig

# Sync components
from .sync import (
    AssetKind,
    CancellationToken,
    SignedAccessProvider,
    SyncOutcome,
    SyncState,
    UploadOutcome,
    UploadPipeline,
    VersionReconciler,
)

__all__ = [
    # Facade
    "AssetStore",
    "AssetSyncConfig",
    "LatestVersion",
    # Keys
    "AssetKeys",
    "background_page_key",
    "menu_layout_key",
    # Local
    "CachedBlob",
    "LocalCache",
    # Remote
    "ObjectStorageBackend",
    "InMemoryBackend",
    "AzureBlobBackend",
    "AzureBlobConfig",
    "create_backend",
    "RemoteVersionedStore",
    "LegacyMirror",
    "FailureKind",
    "RemoteResult",
    "VersionClock",
    "VersionId",
    # Sync
    "AssetKind",
    "CancellationToken",
    "SyncOutcome",
    "SyncState",
    "UploadOutcome",
    "VersionReconciler",
    "UploadPipeline",
    "SignedAccessProvider",
    # Identity
    "IdentityProvider",
    "UserIdentity",
    "ConfigFileIdentityProvider",
    "StaticIdentityProvider",
    # Exceptions
    "AssetSyncError",
    "LocalStorageError",
    "RemoteStorageError",
    "RemoteNotFoundError",
    "RemotePermissionError",
    "RemoteConnectionError",
    "RemoteConflictError",
    "AuthenticationError",
    "ValidationError",
]

__version__ = "0.1.0"
