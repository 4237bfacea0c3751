"""
Custom exceptions for asset synchronization.

Local cache failures are the only errors that reach callers of the
public API. Remote errors are raised by storage backends and translated
into typed results by the remote store.
"""


class AssetSyncError(Exception):
    """Base exception for all asset sync errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class LocalStorageError(AssetSyncError):
    """Raised when the on-device cache rejects a read or write."""

    def __init__(self, operation: str, path: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)
        message = f"Local storage error during {operation}"
        if path:
            message += f": {path}"
        super().__init__(message, details)
        self.operation = operation
        self.path = path
        self.cause = cause


class RemoteStorageError(AssetSyncError):
    """Raised by object storage backends for any remote failure."""

    def __init__(self, message: str, key: str | None = None, cause: Exception | None = None):
        details: dict = {}
        if key:
            details["key"] = key
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, details)
        self.key = key
        self.cause = cause


class RemoteNotFoundError(RemoteStorageError):
    """Raised when a requested object does not exist."""


class RemotePermissionError(RemoteStorageError):
    """Raised when credentials are invalid or access is denied."""


class RemoteConnectionError(RemoteStorageError):
    """Raised when the storage backend is unreachable."""


class RemoteConflictError(RemoteStorageError):
    """Raised when a no-overwrite upload targets an existing object."""


class AuthenticationError(AssetSyncError):
    """Raised when storage credentials are missing or unusable."""

    def __init__(self, endpoint: str, reason: str | None = None):
        details = {"endpoint": endpoint}
        if reason:
            details["reason"] = reason
        message = f"Authentication failed for {endpoint}"
        if reason:
            message += f": {reason}"
        super().__init__(message, details)
        self.endpoint = endpoint
        self.reason = reason


class ValidationError(AssetSyncError):
    """Raised when an owner or asset key is not usable."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Validation failed for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value
