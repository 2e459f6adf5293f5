"""Authentication module: credential checks and stateless session tokens."""

from .credentials import AUTH_PAGES, SESSION_STRATEGY, CredentialsAuthenticator
from .passwords import hash_password, verify_password
from .tokens import create_access_token, verify_token

__all__ = [
    "AUTH_PAGES",
    "SESSION_STRATEGY",
    "CredentialsAuthenticator",
    "hash_password",
    "verify_password",
    "create_access_token",
    "verify_token",
]
