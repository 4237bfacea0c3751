"""
Azure Blob Storage backend.

Async object storage on top of azure-storage-blob. Supports three auth
methods:
- connection_string: full storage connection string (dev, Azurite)
- key: account URL plus shared account key
- default_credential: DefaultAzureCredential (managed identity, az login);
  signed URLs then use a user delegation key instead of the account key
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    HttpResponseError,
    ResourceExistsError,
    ResourceNotFoundError,
    ServiceRequestError,
    ServiceResponseError,
)
from azure.identity.aio import DefaultAzureCredential
from azure.storage.blob import BlobSasPermissions, ContentSettings, generate_blob_sas
from azure.storage.blob.aio import BlobServiceClient

from ..exceptions import (
    AuthenticationError,
    RemoteConflictError,
    RemoteConnectionError,
    RemoteNotFoundError,
    RemotePermissionError,
    RemoteStorageError,
)
from .backend import ObjectStorageBackend
from .types import ObjectInfo, StoredObject

logger = logging.getLogger(__name__)

# Auth methods
AUTH_CONNECTION_STRING = "connection_string"
AUTH_KEY = "key"
AUTH_DEFAULT_CREDENTIAL = "default_credential"

DEFAULT_CONTAINER = "assets"


@dataclass
class AzureBlobConfig:
    """Configuration for the Azure Blob backend.

    Attributes:
        container_name: Blob container holding all owners' assets
        auth_method: 'connection_string', 'key' or 'default_credential'
        account_url: https://{account}.blob.core.windows.net (key/default_credential)
        account_key: Shared account key (auth_method='key')
        connection_string: Storage connection string (auth_method='connection_string')
        page_size: Listing page size
    """

    container_name: str = DEFAULT_CONTAINER
    auth_method: str = AUTH_DEFAULT_CREDENTIAL
    account_url: str | None = None
    account_key: str | None = None
    connection_string: str | None = None
    page_size: int = 100

    @classmethod
    def from_env(cls) -> AzureBlobConfig:
        """Create config from environment variables.

        Expected environment variables:
        - ASSET_SYNC_AZURE_CONTAINER: Container name (default 'assets')
        - ASSET_SYNC_AZURE_AUTH_METHOD: 'connection_string', 'key' or 'default_credential'
        - ASSET_SYNC_AZURE_CONNECTION_STRING: Connection string
        - ASSET_SYNC_AZURE_ACCOUNT_URL: Account blob endpoint
        - ASSET_SYNC_AZURE_ACCOUNT_KEY: Account key (only if auth_method='key')
        """
        connection_string = os.environ.get("ASSET_SYNC_AZURE_CONNECTION_STRING")
        default_method = AUTH_CONNECTION_STRING if connection_string else AUTH_DEFAULT_CREDENTIAL
        config = cls(
            container_name=os.environ.get("ASSET_SYNC_AZURE_CONTAINER", DEFAULT_CONTAINER),
            auth_method=os.environ.get("ASSET_SYNC_AZURE_AUTH_METHOD", default_method),
            account_url=os.environ.get("ASSET_SYNC_AZURE_ACCOUNT_URL"),
            account_key=os.environ.get("ASSET_SYNC_AZURE_ACCOUNT_KEY"),
            connection_string=connection_string,
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Check that the settings needed by auth_method are present.

        Raises:
            AuthenticationError: If a required setting is missing
        """
        if self.auth_method == AUTH_CONNECTION_STRING:
            if not self.connection_string:
                raise AuthenticationError(
                    "azure-blob", "ASSET_SYNC_AZURE_CONNECTION_STRING required"
                )
        elif self.auth_method == AUTH_KEY:
            if not self.account_url or not self.account_key:
                raise AuthenticationError(
                    "azure-blob",
                    "ASSET_SYNC_AZURE_ACCOUNT_URL and ASSET_SYNC_AZURE_ACCOUNT_KEY required "
                    "when auth_method='key'",
                )
        elif self.auth_method == AUTH_DEFAULT_CREDENTIAL:
            if not self.account_url:
                raise AuthenticationError("azure-blob", "ASSET_SYNC_AZURE_ACCOUNT_URL required")
        else:
            raise AuthenticationError("azure-blob", f"Unknown auth method: {self.auth_method}")


class AzureBlobBackend(ObjectStorageBackend):
    """Azure Blob Storage implementation of ObjectStorageBackend."""

    def __init__(self, config: AzureBlobConfig):
        """Initialize the backend.

        Args:
            config: Azure Blob configuration
        """
        config.validate()
        self.config = config
        self._credential: DefaultAzureCredential | None = None
        self._account_key = config.account_key

        if config.auth_method == AUTH_CONNECTION_STRING:
            self._service = BlobServiceClient.from_connection_string(config.connection_string)
            if not self._account_key:
                self._account_key = self._extract_key_from_connection_string(
                    config.connection_string
                )
        elif config.auth_method == AUTH_KEY:
            self._service = BlobServiceClient(
                account_url=config.account_url, credential=config.account_key
            )
        else:
            self._credential = DefaultAzureCredential()
            self._service = BlobServiceClient(
                account_url=config.account_url, credential=self._credential
            )

        self._container = self._service.get_container_client(config.container_name)

    async def put_object(
        self,
        key: str,
        content: bytes,
        content_type: str,
        overwrite: bool = False,
    ) -> ObjectInfo:
        try:
            blob_client = self._container.get_blob_client(key)
            response = await blob_client.upload_blob(
                content,
                overwrite=overwrite,
                content_settings=ContentSettings(content_type=content_type),
            )
        except (AzureError, OSError, asyncio.TimeoutError) as e:
            raise self._translate_error(e, key) from e
        return ObjectInfo(
            key=key,
            size_bytes=len(content),
            content_type=content_type,
            etag=(response.get("etag") or "").strip('"') or None,
            last_modified=response.get("last_modified"),
        )

    async def get_object(self, key: str) -> StoredObject:
        try:
            blob_client = self._container.get_blob_client(key)
            download = await blob_client.download_blob()
            content = await download.readall()
        except (AzureError, OSError, asyncio.TimeoutError) as e:
            raise self._translate_error(e, key) from e
        return StoredObject(content=content, info=self._to_info(key, download.properties))

    async def head_object(self, key: str) -> ObjectInfo:
        try:
            blob_client = self._container.get_blob_client(key)
            properties = await blob_client.get_blob_properties()
        except (AzureError, OSError, asyncio.TimeoutError) as e:
            raise self._translate_error(e, key) from e
        return self._to_info(key, properties)

    async def list_objects(self, prefix: str, limit: int | None = None) -> list[ObjectInfo]:
        infos: list[ObjectInfo] = []
        try:
            async for blob in self._container.list_blobs(
                name_starts_with=prefix, results_per_page=self.config.page_size
            ):
                infos.append(self._to_info(blob.name, blob))
                if limit is not None and len(infos) >= limit:
                    break
        except (AzureError, OSError, asyncio.TimeoutError) as e:
            raise self._translate_error(e, prefix) from e
        return infos

    async def delete_object(self, key: str) -> bool:
        try:
            blob_client = self._container.get_blob_client(key)
            await blob_client.delete_blob()
            return True
        except ResourceNotFoundError:
            return False
        except (AzureError, OSError, asyncio.TimeoutError) as e:
            raise self._translate_error(e, key) from e

    async def generate_signed_url(self, key: str, expires_in: int) -> str:
        now = datetime.now(UTC)
        expiry = now + timedelta(seconds=expires_in)
        blob_client = self._container.get_blob_client(key)

        if self._account_key:
            sas_token = generate_blob_sas(
                account_name=self._service.account_name,
                container_name=self.config.container_name,
                blob_name=key,
                account_key=self._account_key,
                permission=BlobSasPermissions(read=True),
                expiry=expiry,
            )
        elif self._credential is not None:
            try:
                delegation_key = await self._service.get_user_delegation_key(
                    key_start_time=now - timedelta(minutes=5),
                    key_expiry_time=expiry,
                )
            except (AzureError, OSError, asyncio.TimeoutError) as e:
                raise self._translate_error(e, key) from e
            sas_token = generate_blob_sas(
                account_name=self._service.account_name,
                container_name=self.config.container_name,
                blob_name=key,
                user_delegation_key=delegation_key,
                permission=BlobSasPermissions(read=True),
                expiry=expiry,
            )
        else:
            raise RemotePermissionError(
                "Account key or credential required to generate signed URLs", key=key
            )

        return f"{blob_client.url}?{sas_token}"

    async def close(self) -> None:
        await self._service.close()
        if self._credential is not None:
            await self._credential.close()
            self._credential = None

    @staticmethod
    def _to_info(key: str, properties) -> ObjectInfo:
        content_settings = getattr(properties, "content_settings", None)
        content_type = getattr(content_settings, "content_type", None)
        return ObjectInfo(
            key=key,
            size_bytes=getattr(properties, "size", 0) or 0,
            content_type=content_type or "application/octet-stream",
            etag=(getattr(properties, "etag", None) or "").strip('"') or None,
            last_modified=getattr(properties, "last_modified", None),
        )

    @staticmethod
    def _extract_key_from_connection_string(connection_string: str) -> str | None:
        for part in connection_string.split(";"):
            if part.strip().lower().startswith("accountkey="):
                return part.split("=", 1)[1]
        return None

    @staticmethod
    def _translate_error(error: Exception, key: str | None = None) -> RemoteStorageError:
        if isinstance(error, ResourceNotFoundError):
            return RemoteNotFoundError(str(error), key=key, cause=error)
        if isinstance(error, ResourceExistsError):
            return RemoteConflictError(str(error), key=key, cause=error)
        if isinstance(error, ClientAuthenticationError):
            return RemotePermissionError(str(error), key=key, cause=error)
        if isinstance(error, HttpResponseError) and error.status_code == 403:
            return RemotePermissionError(str(error), key=key, cause=error)
        if isinstance(
            error, (ServiceRequestError, ServiceResponseError, OSError, asyncio.TimeoutError)
        ):
            return RemoteConnectionError(str(error), key=key, cause=error)
        return RemoteStorageError(str(error), key=key, cause=error)
