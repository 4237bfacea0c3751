"""Identity provider holding an identity supplied by the embedding application."""

from .provider import IdentityProvider
from .types import AuthenticationRequiredError, AuthProvider, UserIdentity


class StaticIdentityProvider(IdentityProvider):
    """Provider for applications that authenticate users themselves.

    The application calls sign_in() after its own login flow and
    sign_out() on logout; with no identity set there is no session.
    """

    def __init__(self, identity: UserIdentity | None = None):
        self._identity = identity

    @classmethod
    def for_owner(cls, owner: str) -> "StaticIdentityProvider":
        return cls(UserIdentity(user_id=owner, display_name=owner, auth_provider=AuthProvider.STATIC))

    def sign_in(self, identity: UserIdentity) -> None:
        self._identity = identity

    async def get_current_identity(self) -> UserIdentity:
        if self._identity is None:
            raise AuthenticationRequiredError()
        return self._identity

    async def refresh_token(self) -> UserIdentity:
        return await self.get_current_identity()

    async def sign_out(self) -> None:
        self._identity = None

    @property
    def provider_type(self) -> AuthProvider:
        return AuthProvider.STATIC
