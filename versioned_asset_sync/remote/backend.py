"""Abstract base class for object storage backends."""

from abc import ABC, abstractmethod

from .types import ObjectInfo, StoredObject


class ObjectStorageBackend(ABC):
    """Backend-agnostic async interface for blob storage operations.

    Implementations translate their SDK errors into the RemoteStorageError
    hierarchy so the remote store can classify failures uniformly.
    """

    @abstractmethod
    async def put_object(
        self,
        key: str,
        content: bytes,
        content_type: str,
        overwrite: bool = False,
    ) -> ObjectInfo:
        """Upload content. Raises RemoteConflictError if the key exists and overwrite is False."""

    @abstractmethod
    async def get_object(self, key: str) -> StoredObject:
        """Download content by key. Raises RemoteNotFoundError if missing."""

    @abstractmethod
    async def head_object(self, key: str) -> ObjectInfo:
        """Fetch object metadata without content. Raises RemoteNotFoundError if missing."""

    @abstractmethod
    async def list_objects(self, prefix: str, limit: int | None = None) -> list[ObjectInfo]:
        """List objects whose key starts with prefix."""

    @abstractmethod
    async def delete_object(self, key: str) -> bool:
        """Delete a single object. Returns False if the key didn't exist."""

    @abstractmethod
    async def generate_signed_url(self, key: str, expires_in: int) -> str:
        """Return a read-only URL for the key valid for expires_in seconds."""

    async def close(self) -> None:
        """Release network resources."""
        return None
