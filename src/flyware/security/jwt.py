# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""JWT token issuing, decoding, and refreshing on top of PyJWT."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from flyware.kernel.exceptions import ConfigurationException, SecurityException
from flyware.security.context import SecurityContext


@dataclass(frozen=True)
class IssuedToken:
    """A signed token and the moment it stops being valid."""

    token: str
    expires_at: datetime

    def to_dict(self) -> dict[str, str]:
        """Render as the ``{"token", "expires_at"}`` body used by the login endpoints."""
        return {"token": self.token, "expires_at": self.expires_at.isoformat()}


class JWTService:
    """Handles JWT token operations.

    Args:
        secret: Secret key used for signing.  Required.
        algorithm: JWT algorithm (default: HS256).
        timeout: How long an issued token stays valid (default: one hour).
        max_refresh: How long after issuing a token may still be refreshed.
            ``timedelta(0)`` (the default) means tokens are not refreshable.
    """

    def __init__(
        self,
        secret: str | bytes,
        algorithm: str = "HS256",
        timeout: timedelta = timedelta(hours=1),
        max_refresh: timedelta = timedelta(0),
    ) -> None:
        if not secret:
            raise ConfigurationException("JWT secret key is required", code="JWT_NO_SECRET")
        if timeout <= timedelta(0):
            raise ConfigurationException("JWT timeout must be positive", code="JWT_INVALID_TIMEOUT")
        self._secret = secret
        self._algorithm = algorithm
        self._timeout = timeout
        self._max_refresh = max_refresh

    @property
    def timeout(self) -> timedelta:
        return self._timeout

    @property
    def max_refresh(self) -> timedelta:
        return self._max_refresh

    def encode(self, payload: dict[str, Any]) -> str:
        """Encode a payload into a JWT token."""
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str, *, verify_exp: bool = True) -> dict[str, Any]:
        """Decode and validate a JWT token.

        Only tokens signed with the configured algorithm are accepted.

        Raises:
            SecurityException: If the token is invalid or expired.
        """
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": verify_exp},
            )
        except jwt.PyJWTError as exc:
            raise SecurityException(
                f"Invalid token: {exc}",
                code="INVALID_TOKEN",
            ) from exc

    def issue(self, user_id: str, extra_claims: dict[str, Any] | None = None) -> IssuedToken:
        """Sign a new token for *user_id* valid for ``timeout``."""
        now = datetime.now(UTC)
        expires_at = now + self._timeout
        claims = dict(extra_claims or {})
        claims["sub"] = user_id
        claims["iat"] = int(now.timestamp())
        claims["exp"] = int(expires_at.timestamp())
        return IssuedToken(self.encode(claims), _truncate(expires_at))

    def refresh(self, token: str) -> IssuedToken:
        """Re-issue *token* with a fresh expiry.

        The signature must verify, but an expired token is accepted as long
        as it was issued within ``max_refresh``.

        Raises:
            SecurityException: If the token is invalid or too old to refresh.
        """
        claims = self.decode(token, verify_exp=False)
        now = datetime.now(UTC)
        issued_at = int(claims.get("iat", 0))
        if self._max_refresh <= timedelta(0) or issued_at < int((now - self._max_refresh).timestamp()):
            raise SecurityException("Token is expired", code="TOKEN_NOT_REFRESHABLE")

        expires_at = now + self._timeout
        claims["exp"] = int(expires_at.timestamp())
        return IssuedToken(self.encode(claims), _truncate(expires_at))

    def to_security_context(self, token: str) -> SecurityContext:
        """Decode a JWT token and build a SecurityContext.

        Uses ``sub`` as the user id and the optional ``roles`` claim.
        """
        payload = self.decode(token)
        return context_from_claims(payload)


def context_from_claims(claims: dict[str, Any]) -> SecurityContext:
    """Build a :class:`SecurityContext` from decoded token claims."""
    sub = claims.get("sub")
    return SecurityContext(
        user_id=str(sub) if sub is not None else None,
        roles=list(claims.get("roles", [])),
        claims=claims,
    )


def _truncate(moment: datetime) -> datetime:
    # Claims carry whole seconds; keep expires_at consistent with "exp".
    return moment.replace(microsecond=0)
