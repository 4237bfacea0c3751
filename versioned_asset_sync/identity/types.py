"""
Identity types and data classes.

Defines the authenticated owner identity that scopes every asset key
and storage path.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class AuthProvider(Enum):
    """Supported authentication providers."""

    CONFIG = "config"  # Local settings file (dev/offline)
    STATIC = "static"  # Identity handed in by the embedding application
    OAUTH = "oauth"  # Token issued by an external auth service


@dataclass
class UserIdentity:
    """Identity of the asset owner.

    The user_id is the Owner value used to namespace local cache keys and
    remote object paths.
    """

    user_id: str
    display_name: str
    email: str | None = None

    # Auth context (for cloud operations)
    auth_provider: AuthProvider = AuthProvider.CONFIG
    auth_token: str | None = None
    token_expiry: datetime | None = None

    def is_authenticated(self) -> bool:
        """Check if we have valid authentication.

        Config and static providers without a token are always
        "authenticated"; token-based identities check expiry.
        """
        if self.auth_token is None:
            return self.auth_provider in (AuthProvider.CONFIG, AuthProvider.STATIC)
        if self.token_expiry is None:
            return True
        return datetime.now(UTC) < self.token_expiry

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "user_id": self.user_id,
            "display_name": self.display_name,
            "email": self.email,
            "auth_provider": self.auth_provider.value,
            "token_expiry": self.token_expiry.isoformat() if self.token_expiry else None,
            # Note: auth_token intentionally excluded for security
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserIdentity":
        """Deserialize from dictionary."""
        token_expiry = None
        if data.get("token_expiry"):
            token_expiry = datetime.fromisoformat(data["token_expiry"])

        return cls(
            user_id=data["user_id"],
            display_name=data.get("display_name", data["user_id"]),
            email=data.get("email"),
            auth_provider=AuthProvider(data.get("auth_provider", "config")),
            token_expiry=token_expiry,
        )


# Exceptions


class AuthenticationRequiredError(Exception):
    """Raised when authentication is required but not present."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)
        self.message = message
