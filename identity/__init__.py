"""Identity adapter and the Google auth provider."""
from .adapter import IdentityAdapter, IdentityCallback, IdentityProvider, SignInResult
from .google import GoogleIdentityProvider

__all__ = [
    "GoogleIdentityProvider",
    "IdentityAdapter",
    "IdentityCallback",
    "IdentityProvider",
    "SignInResult",
]
