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
"""In-memory cache adapter."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Any


class InMemoryCache:
    """In-memory cache with optional TTL support.

    Suitable for development, testing, and single-process applications.
    Expired entries are dropped lazily when they are next read.

    Args:
        default_ttl: Expiration applied when ``put`` receives no ``ttl``.
            ``None`` keeps such entries forever.
    """

    def __init__(self, default_ttl: timedelta | None = None) -> None:
        self._store: dict[str, tuple[Any, float | None]] = {}
        self._default_ttl = default_ttl

    async def get(self, key: str) -> Any | None:
        """Get a value by key. Returns None if missing or expired."""
        entry = self._store.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at is not None and time.monotonic() > expires_at:
            del self._store[key]
            return None

        return value

    async def put(self, key: str, value: Any, ttl: timedelta | None = None) -> None:
        """Store a value, replacing any existing entry."""
        ttl = ttl if ttl is not None else self._default_ttl
        expires_at = time.monotonic() + ttl.total_seconds() if ttl is not None else None
        self._store[key] = (value, expires_at)

    async def evict(self, key: str) -> bool:
        """Remove a key. Returns True if the key existed."""
        return self._store.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def clear(self) -> None:
        self._store.clear()
