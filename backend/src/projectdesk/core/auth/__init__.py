"""Auth utilities: access tokens and password hashing."""

from projectdesk.core.auth.jwt import JWTAuthenticator, TokenError, TokenPayload
from projectdesk.core.auth.password import hash_password, verify_password

__all__ = [
    "JWTAuthenticator",
    "TokenError",
    "TokenPayload",
    "hash_password",
    "verify_password",
]
