"""
Owner identity and session checks.

Provides the owner identity that scopes every asset and tells sync
components whether remote operations are possible.
"""

from .config_provider import ConfigFileIdentityProvider
from .provider import IdentityProvider
from .static_provider import StaticIdentityProvider
from .types import AuthenticationRequiredError, AuthProvider, UserIdentity

__all__ = [
    # Types
    "AuthProvider",
    "UserIdentity",
    # Errors
    "AuthenticationRequiredError",
    # Providers
    "IdentityProvider",
    "ConfigFileIdentityProvider",
    "StaticIdentityProvider",
]
