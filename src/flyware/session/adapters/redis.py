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
"""Redis-backed session store."""

from __future__ import annotations

import json
from typing import Any, cast

import structlog

from flyware.kernel.exceptions import SessionException

logger = structlog.get_logger("flyware.session")

DEFAULT_KEY_PREFIX = "flyware:session:"
DEFAULT_MAX_LENGTH = 4096


class RedisSessionStore:
    """Session store backed by ``redis.asyncio``.

    Values are JSON-serialized before storage and keys are namespaced with
    *key_prefix*.

    Args:
        client: A ``redis.asyncio.Redis``-like client.
        key_prefix: Prefix prepended to every session id.
        max_length: Largest serialized session accepted, in bytes.
            ``0`` disables the limit.
    """

    def __init__(
        self,
        client: Any,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        max_length: int = DEFAULT_MAX_LENGTH,
    ) -> None:
        self._client = client
        self._key_prefix = key_prefix
        self._max_length = max(max_length, 0)

    def _key(self, session_id: str) -> str:
        return f"{self._key_prefix}{session_id}"

    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Retrieve and deserialize session data."""
        raw = await self._client.get(self._key(session_id))
        if raw is None:
            return None
        try:
            return cast(dict[str, Any], json.loads(raw))
        except (json.JSONDecodeError, TypeError):
            logger.warning("session_deserialize_failed", session_id=session_id)
            return None

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        """Serialize and store session data with a TTL in seconds.

        Raises:
            SessionException: If the serialized session exceeds ``max_length``.
        """
        raw = json.dumps(data).encode()
        if self._max_length and len(raw) > self._max_length:
            raise SessionException(
                "the value to store is too big",
                code="SESSION_TOO_BIG",
                context={"size": len(raw), "max_length": self._max_length},
            )
        await self._client.set(self._key(session_id), raw, ex=ttl)

    async def delete(self, session_id: str) -> None:
        await self._client.delete(self._key(session_id))

    async def exists(self, session_id: str) -> bool:
        count = await self._client.exists(self._key(session_id))
        return cast(bool, count > 0)

    async def close(self) -> None:
        """Close the underlying Redis connection."""
        await self._client.aclose()
