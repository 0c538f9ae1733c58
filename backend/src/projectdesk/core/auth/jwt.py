"""JWT token creation and validation."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from projectdesk.core.errors import UnauthenticatedError
from projectdesk.core.identity.types import Caller, GlobalRole

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60


class TokenError(UnauthenticatedError):
    """Raised when token validation fails."""

    pass


@dataclass(frozen=True)
class TokenPayload:
    """Decoded access token claims."""

    sub: str
    role: str
    exp: int
    iat: int


class JWTAuthenticator:
    """Issues and verifies HS256 access tokens."""

    def __init__(
        self,
        secret_key: str,
        expire_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES,
        algorithm: str = ALGORITHM,
    ) -> None:
        """Initialize with signing configuration.

        Args:
            secret_key: HMAC secret shared by issuer and verifier.
            expire_minutes: Lifetime of issued access tokens.
            algorithm: JWT signing algorithm.
        """
        self._secret_key = secret_key
        self._expire_minutes = expire_minutes
        self._algorithm = algorithm

    def create_access_token(self, user_id: UUID, role: GlobalRole = GlobalRole.USER) -> str:
        """Create a signed access token.

        Args:
            user_id: User identifier.
            role: User's global role.

        Returns:
            Encoded JWT string.
        """
        now = datetime.now(timezone.utc)
        expire = now + timedelta(minutes=self._expire_minutes)

        payload = {
            "sub": str(user_id),
            "role": role.value,
            "exp": int(expire.timestamp()),
            "iat": int(now.timestamp()),
        }

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate a JWT token.

        Raises:
            TokenError: If token is invalid or expired.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
            return TokenPayload(
                sub=payload["sub"],
                role=payload.get("role", GlobalRole.USER.value),
                exp=payload["exp"],
                iat=payload["iat"],
            )
        except jwt.ExpiredSignatureError:
            raise TokenError("Token has expired") from None
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}") from None
        except KeyError as e:
            raise TokenError(f"Invalid token: missing claim {e}") from None

    def authenticate(self, token: str | None) -> Caller:
        """Turn a bearer token into the caller identity.

        Raises:
            UnauthenticatedError: If the token is missing or invalid.
        """
        if not token:
            raise UnauthenticatedError("Missing bearer token")
        payload = self.decode_token(token)
        try:
            return Caller(user_id=UUID(payload.sub), role=GlobalRole(payload.role))
        except ValueError:
            raise TokenError("Invalid token: malformed subject or role") from None
