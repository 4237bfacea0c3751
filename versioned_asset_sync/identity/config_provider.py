"""
Config file identity provider.

Reads the owner identity from a local settings file for development
and offline-first usage.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from .provider import IdentityProvider
from .types import AuthenticationRequiredError, AuthProvider, UserIdentity

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".asset_sync" / "settings.yaml"


class ConfigFileIdentityProvider(IdentityProvider):
    """Identity provider that reads from local config.

    Configuration in ~/.asset_sync/settings.yaml:

    ```yaml
    identity:
      user_id: "user-abc123"
      display_name: "Menu Board Owner"
      email: "owner@example.com"
    ```

    Without a user_id there is no identity and therefore no session;
    assets are then kept in the local cache only.
    """

    def __init__(self, config_path: Path | None = None):
        """Initialize the config file provider.

        Args:
            config_path: Path to settings.yaml. Defaults to ~/.asset_sync/settings.yaml
        """
        self.config_path = config_path or DEFAULT_SETTINGS_PATH
        self._identity: UserIdentity | None = None

    async def get_current_identity(self) -> UserIdentity:
        """Get the current user identity from config.

        Returns cached identity if available, otherwise loads from config.

        Raises:
            AuthenticationRequiredError: If no user_id is configured
        """
        if self._identity is not None:
            return self._identity

        identity_config = self._load_config().get("identity", {}) or {}
        user_id = identity_config.get("user_id")
        if not user_id:
            raise AuthenticationRequiredError(f"No identity.user_id in {self.config_path}")

        self._identity = UserIdentity(
            user_id=str(user_id),
            display_name=identity_config.get("display_name", str(user_id)),
            email=identity_config.get("email"),
            auth_provider=AuthProvider.CONFIG,
        )
        return self._identity

    async def refresh_token(self) -> UserIdentity:
        """Config provider has no token to refresh."""
        return await self.get_current_identity()

    async def sign_out(self) -> None:
        """Clear cached identity. The config file is not modified."""
        self._identity = None

    @property
    def provider_type(self) -> AuthProvider:
        """Return CONFIG provider type."""
        return AuthProvider.CONFIG

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            return {}

        try:
            return yaml.safe_load(self.config_path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not read settings file {self.config_path}: {e}")
            return {}

    async def update_config(
        self,
        user_id: str | None = None,
        display_name: str | None = None,
        email: str | None = None,
    ) -> UserIdentity:
        """Update identity configuration.

        Updates the settings.yaml file and returns the new identity.
        Only provided values are updated; None values are left unchanged.
        """
        config = self._load_config()
        identity_config: dict[str, Any] = config.setdefault("identity", {})

        if user_id is not None:
            identity_config["user_id"] = user_id
        if display_name is not None:
            identity_config["display_name"] = display_name
        if email is not None:
            identity_config["email"] = email

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(yaml.safe_dump(config, default_flow_style=False))

        # Clear cache and reload
        self._identity = None
        return await self.get_current_identity()
