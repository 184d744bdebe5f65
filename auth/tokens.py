"""
auth/tokens.py -- Session token issuance (JWT via python-jose).

Security design decisions:
  JWT: python-jose with HS256. Tokens carry the username both as "sub" and as
       "username", the flat role label, "iat" and "exp". exp is iat +
       expire_seconds (24h by default). Tokens are stateless: never stored,
       never revoked, valid until exp for whoever holds them.

  Signing key: lives in an explicit SigningConfig built once at startup from
       core.config.Settings (SigningConfig.from_settings) and handed to the
       TokenIssuer constructor. There is no module-level key -- two issuers
       with different configs can coexist in one process, which is what the
       tests do.

  Failures: issue() raises TokenIssueError when signing fails. It never
       returns an unsigned or partially built token. decode() returns None on
       any verification failure -- callers turn None into a 401.

Layer rule: no imports from api/. core/ is imported for type hints only.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from jose import JOSEError, jwt

from auth.errors import TokenIssueError
from auth.models import TokenClaims

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("credentials.auth")

DEFAULT_ALGORITHM = "HS256"
DEFAULT_EXPIRE_SECONDS = 24 * 3600


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SigningConfig:
    """Process-wide signing material for session tokens."""

    secret_key: str
    algorithm: str = DEFAULT_ALGORITHM
    expire_seconds: int = DEFAULT_EXPIRE_SECONDS

    def __repr__(self) -> str:
        return f"SigningConfig(algorithm={self.algorithm!r}, expire_seconds={self.expire_seconds})"

    @classmethod
    def from_settings(cls, settings: Settings) -> SigningConfig:
        return cls(secret_key=settings.secret_key, expire_seconds=settings.token_expire_seconds)


class TokenIssuer:
    """Builds and signs bearer tokens for authenticated accounts.

    Usage:
        issuer = TokenIssuer(SigningConfig(secret_key=key))
        token = issuer.issue("alice", "USER")
        claims = issuer.decode(token)
    """

    def __init__(self, config: SigningConfig, clock: Callable[[], datetime] = _utcnow) -> None:
        self._config = config
        self._clock = clock

    @property
    def expire_seconds(self) -> int:
        return self._config.expire_seconds

    def issue(self, username: str, role: str) -> str:
        """Encode and sign a token for (username, role) expiring expire_seconds from now."""
        if not self._config.secret_key:
            raise TokenIssueError("signing key is not configured")
        issued_at = int(self._clock().timestamp())
        payload = {
            "sub": username,
            "username": username,
            "role": role,
            "iat": issued_at,
            "exp": issued_at + self._config.expire_seconds,
        }
        try:
            return jwt.encode(payload, self._config.secret_key, algorithm=self._config.algorithm)
        except (JOSEError, TypeError, ValueError) as exc:
            raise TokenIssueError(f"failed to sign token: {exc}") from exc

    def decode(self, token: str) -> TokenClaims | None:
        """Verify signature and expiry. Returns the claims or None on any failure."""
        try:
            payload = jwt.decode(token, self._config.secret_key, algorithms=[self._config.algorithm])
        except JOSEError:
            return None
        try:
            return TokenClaims(
                username=payload["username"],
                role=payload["role"],
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Token with valid signature is missing required claims")
            return None
