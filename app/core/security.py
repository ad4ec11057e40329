"""Password hashing and JWT issuance/verification for authentication."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.errors import InvalidToken
from app.schemas.auth import TokenClaims

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models.user import User

PASSWORD_MIN_LEN = 8

# Default token lifetime when no configuration overrides it (7 days).
DEFAULT_TOKEN_TTL = timedelta(days=7)


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors.
    pw_bytes = plain_password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@dataclass(frozen=True)
class TokenConfig:
    """Signing secret, algorithm and lifetime for identity tokens."""

    secret: str
    algorithm: str = "HS256"
    ttl: timedelta = DEFAULT_TOKEN_TTL

    @classmethod
    def from_settings(cls, s: "Settings") -> "TokenConfig":
        return cls(
            secret=s.JWT_SECRET.get_secret_value(),
            algorithm=s.JWT_ALGORITHM,
            ttl=timedelta(minutes=s.JWT_EXPIRE_MINUTES),
        )


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenService:
    """
    Issues and verifies signed, time-bound identity tokens.

    Tokens are stateless: nothing is stored and there is no revocation list,
    so a leaked token stays valid until it expires.
    """

    def __init__(
        self,
        config: TokenConfig,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self.clock = clock

    def issue(self, user: "User") -> str:
        """Create a token carrying the user's id, email, username and role."""
        now = self.clock()
        payload: dict[str, Any] = {
            "id": str(user.id),
            "email": user.email,
            "username": user.username,
            "role": user.role,
            "iat": now,
            "exp": now + self.config.ttl,
        }
        return jwt.encode(payload, self.config.secret, algorithm=self.config.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a token.

        Raises InvalidToken when the signature is wrong, the token has expired,
        or the payload does not carry the expected claims.
        """
        try:
            payload = jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["exp", "iat"],
                },
            )
        except jwt.PyJWTError as e:
            raise InvalidToken(str(e)) from e

        # Expiry is checked against the injected clock rather than PyJWT's.
        if self.clock().timestamp() >= float(payload["exp"]):
            raise InvalidToken("Token has expired")

        try:
            return TokenClaims.model_validate(payload)
        except PydanticValidationError as e:
            raise InvalidToken("Malformed token payload") from e


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide token service built from settings."""
    return TokenService(TokenConfig.from_settings(settings))
