"""
Identity provider abstract interface.

Defines the contract that owner/session providers must implement.
"""

import logging
from abc import ABC, abstractmethod

from .types import AuthenticationRequiredError, AuthProvider, UserIdentity

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    """Abstract identity provider.

    Supplies the current owner identity and answers whether an
    authenticated session exists. Sync components never treat a missing
    session as an error: they fall back to local-cache-only operation.
    """

    @abstractmethod
    async def get_current_identity(self) -> UserIdentity:
        """Get the current authenticated user identity.

        Raises:
            AuthenticationRequiredError: If not authenticated
        """
        ...

    @abstractmethod
    async def refresh_token(self) -> UserIdentity:
        """Refresh authentication token if expired.

        For providers that don't use tokens, returns the current identity.
        """
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        """Sign out and clear cached credentials."""
        ...

    @property
    @abstractmethod
    def provider_type(self) -> AuthProvider:
        """Get the provider type."""
        ...

    async def has_session(self, owner: str) -> bool:
        """Check for an authenticated session belonging to owner.

        A session for a different user never grants access to owner's
        remote folders.
        """
        try:
            identity = await self.get_current_identity()
        except AuthenticationRequiredError:
            return False
        if identity.user_id != owner:
            logger.debug(f"Session belongs to {identity.user_id}, not {owner}")
            return False
        return identity.is_authenticated()
