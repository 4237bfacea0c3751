"""
Asset sync configuration.

Settings come from ASSET_SYNC_* environment variables or from the
``asset_sync:`` section of a YAML settings file:

```yaml
asset_sync:
  cache_dir: ~/.asset_sync/cache
  container_name: assets
  storage_type: azure
  legacy_mirror_enabled: true
  default_signed_url_ttl: 1800
  azure:
    auth_method: default_credential
    account_url: https://myaccount.blob.core.windows.net
```
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ValidationError
from .remote.azure_blob import AUTH_CONNECTION_STRING, AUTH_DEFAULT_CREDENTIAL, AzureBlobConfig
from .remote.factory import STORAGE_AZURE
from .sync.signed_access import DEFAULT_TTL_SECONDS, MAX_TTL_SECONDS

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = Path.home() / ".asset_sync" / "cache"
DEFAULT_SETTINGS_PATH = Path.home() / ".asset_sync" / "settings.yaml"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValidationError(name, "must be an integer", value) from e


@dataclass
class AssetSyncConfig:
    """Configuration for an AssetStore.

    Attributes:
        cache_dir: Directory for the on-device cache
        container_name: Object storage container for versioned folders
        storage_type: 'azure' or 'memory'
        legacy_mirror_enabled: Keep the fixed legacy path updated and read it as a fallback
        default_signed_url_ttl: Signed URL lifetime when the caller gives none (seconds)
        max_signed_url_ttl: Upper bound for caller-supplied lifetimes (seconds)
        list_page_limit: Page size used when listing remote folders
        storage: Azure Blob settings (used when storage_type is 'azure')
    """

    cache_dir: Path = DEFAULT_CACHE_DIR
    container_name: str = "assets"
    storage_type: str = STORAGE_AZURE
    legacy_mirror_enabled: bool = True
    default_signed_url_ttl: int = DEFAULT_TTL_SECONDS
    max_signed_url_ttl: int = MAX_TTL_SECONDS
    list_page_limit: int = 100
    storage: AzureBlobConfig = field(default_factory=AzureBlobConfig)

    def __post_init__(self) -> None:
        self.cache_dir = Path(self.cache_dir).expanduser()
        self.storage.container_name = self.container_name
        self.storage.page_size = self.list_page_limit

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ValidationError: If a value is out of range
        """
        if not self.container_name:
            raise ValidationError("container_name", "must not be empty")
        if self.default_signed_url_ttl < 1:
            raise ValidationError("default_signed_url_ttl", "must be >= 1", str(self.default_signed_url_ttl))
        if self.max_signed_url_ttl < self.default_signed_url_ttl:
            raise ValidationError(
                "max_signed_url_ttl",
                "must be >= default_signed_url_ttl",
                str(self.max_signed_url_ttl),
            )
        if self.list_page_limit < 1:
            raise ValidationError("list_page_limit", "must be >= 1", str(self.list_page_limit))

    @classmethod
    def from_env(cls) -> AssetSyncConfig:
        """Create config from environment variables.

        Expected environment variables (all optional):
        - ASSET_SYNC_CACHE_DIR: Local cache directory
        - ASSET_SYNC_CONTAINER: Container name (default 'assets')
        - ASSET_SYNC_STORAGE_TYPE: 'azure' or 'memory' (default 'azure')
        - ASSET_SYNC_LEGACY_MIRROR: Enable the legacy mirror (default true)
        - ASSET_SYNC_SIGNED_URL_TTL: Default signed URL lifetime in seconds
        - ASSET_SYNC_MAX_SIGNED_URL_TTL: Maximum signed URL lifetime in seconds
        - ASSET_SYNC_LIST_PAGE_LIMIT: Listing page size
        - ASSET_SYNC_AZURE_*: Azure Blob settings, see AzureBlobConfig.from_env

        Azure settings are only validated when the backend is created.
        """
        connection_string = os.environ.get("ASSET_SYNC_AZURE_CONNECTION_STRING")
        default_method = AUTH_CONNECTION_STRING if connection_string else AUTH_DEFAULT_CREDENTIAL
        storage = AzureBlobConfig(
            auth_method=os.environ.get("ASSET_SYNC_AZURE_AUTH_METHOD", default_method),
            account_url=os.environ.get("ASSET_SYNC_AZURE_ACCOUNT_URL"),
            account_key=os.environ.get("ASSET_SYNC_AZURE_ACCOUNT_KEY"),
            connection_string=connection_string,
        )
        config = cls(
            cache_dir=Path(os.environ.get("ASSET_SYNC_CACHE_DIR", str(DEFAULT_CACHE_DIR))),
            container_name=os.environ.get(
                "ASSET_SYNC_CONTAINER", os.environ.get("ASSET_SYNC_AZURE_CONTAINER", "assets")
            ),
            storage_type=os.environ.get("ASSET_SYNC_STORAGE_TYPE", STORAGE_AZURE).lower(),
            legacy_mirror_enabled=_env_bool("ASSET_SYNC_LEGACY_MIRROR", True),
            default_signed_url_ttl=_env_int("ASSET_SYNC_SIGNED_URL_TTL", DEFAULT_TTL_SECONDS),
            max_signed_url_ttl=_env_int("ASSET_SYNC_MAX_SIGNED_URL_TTL", MAX_TTL_SECONDS),
            list_page_limit=_env_int("ASSET_SYNC_LIST_PAGE_LIMIT", 100),
            storage=storage,
        )
        config.validate()
        return config

    @classmethod
    def from_settings(cls, path: Path | None = None) -> AssetSyncConfig:
        """Create config from the asset_sync section of a YAML settings file.

        A missing file or section yields the defaults.

        Raises:
            ValidationError: If the file cannot be parsed or a value is out of range
        """
        settings_path = Path(path or DEFAULT_SETTINGS_PATH).expanduser()
        section: dict[str, Any] = {}
        if settings_path.exists():
            try:
                loaded = yaml.safe_load(settings_path.read_text()) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ValidationError("settings", f"unreadable: {e}", str(settings_path)) from e
            section = loaded.get("asset_sync", {}) or {}
        else:
            logger.debug(f"No settings file at {settings_path}; using defaults")

        azure = section.get("azure", {}) or {}
        storage = AzureBlobConfig(
            auth_method=azure.get("auth_method", AUTH_DEFAULT_CREDENTIAL),
            account_url=azure.get("account_url"),
            account_key=azure.get("account_key"),
            connection_string=azure.get("connection_string"),
        )
        config = cls(
            cache_dir=Path(section.get("cache_dir", str(DEFAULT_CACHE_DIR))),
            container_name=section.get("container_name", "assets"),
            storage_type=str(section.get("storage_type", STORAGE_AZURE)).lower(),
            legacy_mirror_enabled=bool(section.get("legacy_mirror_enabled", True)),
            default_signed_url_ttl=int(section.get("default_signed_url_ttl", DEFAULT_TTL_SECONDS)),
            max_signed_url_ttl=int(section.get("max_signed_url_ttl", MAX_TTL_SECONDS)),
            list_page_limit=int(section.get("list_page_limit", 100)),
            storage=storage,
        )
        config.validate()
        return config
