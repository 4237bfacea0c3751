"""Factory for creating object storage backends based on configuration."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from .backend import ObjectStorageBackend

if TYPE_CHECKING:
    from .azure_blob import AzureBlobConfig

logger = logging.getLogger(__name__)

STORAGE_AZURE = "azure"
STORAGE_MEMORY = "memory"


def create_backend(
    container_name: str,
    storage_type: str | None = None,
    azure_config: AzureBlobConfig | None = None,
) -> ObjectStorageBackend:
    """Create an ObjectStorageBackend for the given container.

    Args:
        container_name: Container holding the asset folders
        storage_type: Override backend type. Reads ASSET_SYNC_STORAGE_TYPE if None.
            Defaults to "azure".
        azure_config: Azure settings. Read from the environment if None.

    Returns:
        Configured ObjectStorageBackend instance

    Raises:
        ValueError: If storage_type is unsupported
        AuthenticationError: If required Azure settings are missing
    """
    backend = (storage_type or os.getenv("ASSET_SYNC_STORAGE_TYPE", STORAGE_AZURE)).lower()

    if backend == STORAGE_AZURE:
        from .azure_blob import AzureBlobBackend, AzureBlobConfig

        config = azure_config or AzureBlobConfig.from_env()
        config.container_name = container_name
        logger.info(f"Using Azure Blob storage container '{container_name}'")
        return AzureBlobBackend(config)
    if backend == STORAGE_MEMORY:
        from .memory import InMemoryBackend

        logger.info("Using in-memory object storage")
        return InMemoryBackend(container_name)

    raise ValueError(f"Unsupported storage type: {backend!r}. Supported: azure, memory")
