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
"""Session filters: load and persist HTTP sessions via cookies.

:class:`SessionFilter` keeps session data in a :class:`SessionStore` and only
the session id in the cookie.  :class:`CookieSessionFilter` keeps the whole
session in a cookie signed with ``itsdangerous``.
"""

from __future__ import annotations

import abc
import uuid
from collections.abc import Sequence
from typing import Any, Literal

import structlog
from itsdangerous import BadSignature, URLSafeTimedSerializer

from flyware.container.ordering import HIGHEST_PRECEDENCE, order
from flyware.kernel.exceptions import ConfigurationException, SessionException
from flyware.session.ports.outbound import SessionStore
from flyware.session.session import HttpSession
from flyware.web.filters import OncePerRequestFilter
from flyware.web.ports.filter import CallNext

logger = structlog.get_logger("flyware.session")

DEFAULT_COOKIE_NAME = "FLYWARE_SESSION"
DEFAULT_TTL = 86400 * 30  # 30 days

SameSite = Literal["lax", "strict", "none"]


@order(HIGHEST_PRECEDENCE + 400)
class _CookieBoundSessionFilter(OncePerRequestFilter, abc.ABC):
    """Shared cookie handling: attaches ``request.state.session`` and writes the cookie."""

    def __init__(
        self,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        ttl: int = DEFAULT_TTL,
        *,
        path: str = "/",
        domain: str | None = None,
        secure: bool = False,
        http_only: bool = True,
        same_site: SameSite = "lax",
    ) -> None:
        self._cookie_name = cookie_name
        self._ttl = ttl
        self._cookie_options: dict[str, Any] = {
            "path": path,
            "domain": domain,
            "secure": secure,
            "httponly": http_only,
            "samesite": same_site,
        }

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        session = await self._load_session(request)
        request.state.session = session

        try:
            response = await call_next(request)
        finally:
            cookie_value = await self._persist_session(session)

        if session.invalidated:
            response.delete_cookie(key=self._cookie_name, **self._cookie_options)
        elif cookie_value is not None:
            response.set_cookie(
                key=self._cookie_name,
                value=cookie_value,
                max_age=self._ttl,
                **self._cookie_options,
            )

        return response

    @abc.abstractmethod
    async def _load_session(self, request: Any) -> HttpSession: ...

    @abc.abstractmethod
    async def _persist_session(self, session: HttpSession) -> str | None:
        """Save or delete the session; return the cookie value to send, if any."""


class SessionFilter(_CookieBoundSessionFilter):
    """Manages server-side sessions via a configurable cookie.

    Reads the session id from the cookie, loads session data from the
    ``SessionStore``, attaches the ``HttpSession`` to
    ``request.state.session``, and persists changes after the response.
    """

    def __init__(
        self,
        store: SessionStore,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        ttl: int = DEFAULT_TTL,
        **cookie_options: Any,
    ) -> None:
        super().__init__(cookie_name, ttl, **cookie_options)
        self._store = store

    async def _load_session(self, request: Any) -> HttpSession:
        session_id = request.cookies.get(self._cookie_name)

        if session_id:
            data = await self._store.get(session_id)
            if data is not None:
                return HttpSession(session_id, data)

        return HttpSession(uuid.uuid4().hex, is_new=True)

    async def _persist_session(self, session: HttpSession) -> str | None:
        if session.invalidated:
            await self._store.delete(session.id)
            return None
        if session.modified:
            await self._store.save(session.id, session.get_data(), self._ttl)
        return session.id if session.is_new else None


class CookieSessionFilter(_CookieBoundSessionFilter):
    """Stores the whole session in a signed, timestamped cookie.

    Args:
        secret_keys: Signing keys, oldest first.  The last key signs new
            cookies; every key is accepted when reading, which allows key
            rotation.
        max_length: Largest cookie value accepted, in bytes.  ``0`` disables
            the limit.

    Raises:
        ConfigurationException: If no secret key is given.
    """

    def __init__(
        self,
        secret_keys: Sequence[str | bytes],
        cookie_name: str = DEFAULT_COOKIE_NAME,
        ttl: int = DEFAULT_TTL,
        *,
        max_length: int = 4096,
        **cookie_options: Any,
    ) -> None:
        if not secret_keys:
            raise ConfigurationException(
                "Cookie sessions require at least one secret key",
                code="SESSION_NO_SECRET",
            )
        super().__init__(cookie_name, ttl, **cookie_options)
        self._serializer = URLSafeTimedSerializer(list(secret_keys), salt="flyware.session")
        self._max_length = max(max_length, 0)

    async def _load_session(self, request: Any) -> HttpSession:
        raw = request.cookies.get(self._cookie_name)
        if raw:
            try:
                data = self._serializer.loads(raw, max_age=self._ttl)
            except BadSignature:
                logger.debug("session_cookie_rejected", cookie=self._cookie_name)
            else:
                if isinstance(data, dict) and "_id" in data:
                    return HttpSession(str(data.pop("_id")), data)
                logger.debug("session_cookie_malformed", cookie=self._cookie_name)

        return HttpSession(uuid.uuid4().hex, is_new=True)

    async def _persist_session(self, session: HttpSession) -> str | None:
        if session.invalidated or not session.modified:
            return None

        value = self._serializer.dumps({**session.get_data(), "_id": session.id})
        if self._max_length and len(value) > self._max_length:
            raise SessionException(
                "the value to store is too big",
                code="SESSION_TOO_BIG",
                context={"size": len(value), "max_length": self._max_length},
            )
        return value
