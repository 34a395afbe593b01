from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import jwt
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

Clock = Callable[[], datetime]

DEFAULT_TOKEN_TTL = timedelta(days=5)


class TokenError(Exception):
    """Base class for token verification failures."""


class ExpiredToken(TokenError):
    """The token's expiry is at or before the current time."""


class InvalidSignature(TokenError):
    """The token was not signed with this service's secret."""


class MalformedToken(TokenError):
    """The token could not be decoded or lacks required claims."""


# PUBLIC_INTERFACE
class TokenClaims(BaseModel):
    """Decoded session token payload."""

    email: str
    iat: int
    exp: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
class TokenService:
    """
    Issue and verify signed, time-limited session tokens.

    Tokens are JWTs carrying `email`, `iat` and `exp` (whole seconds). A token
    is valid iff its signature verifies against the secret and the current
    time is strictly before `exp`.

    Args:
        secret: HMAC signing secret. Must be non-empty.
        algorithm: JWT algorithm, HS256 by default.
        ttl: lifetime of issued tokens, five days by default.
        clock: callable returning the current aware datetime; injectable for tests.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = DEFAULT_TOKEN_TTL,
        clock: Optional[Clock] = None,
    ) -> None:
        if not secret:
            raise ValueError("A non-empty signing secret is required")
        if ttl <= timedelta(0):
            raise ValueError("Token ttl must be positive")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = ttl
        self._clock: Clock = clock or _utcnow

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def _now_ts(self) -> float:
        return self._clock().timestamp()

    def issue(self, email: str) -> str:
        """Create a signed token for `email` expiring `ttl` after issuance."""
        # NumericDate claims are whole seconds; validity ends at the truncated iat + ttl.
        issued_at = int(self._now_ts())
        payload: Dict[str, Any] = {
            "email": email,
            "iat": issued_at,
            "exp": issued_at + int(self._ttl.total_seconds()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Check signature and expiry and return the decoded claims.

        Raises:
            ExpiredToken: current time >= exp.
            InvalidSignature: signature does not match the secret.
            MalformedToken: token cannot be parsed or misses email/iat/exp.
        """
        try:
            # Time checks happen below against the injected clock.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": ["email", "iat", "exp"],
                },
            )
        except jwt.InvalidSignatureError as e:
            raise InvalidSignature("Token signature mismatch") from e
        except jwt.InvalidTokenError as e:
            raise MalformedToken(str(e) or "Token could not be decoded") from e

        try:
            claims = TokenClaims(**payload)
        except PydanticValidationError as e:
            raise MalformedToken("Token claims have unexpected types") from e

        if self._now_ts() >= claims.exp:
            raise ExpiredToken("Token has expired")
        return claims
