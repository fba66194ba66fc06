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
"""ResponseCacheFilter: caches whole GET responses in a :class:`CacheAdapter`."""

from __future__ import annotations

import base64
import hashlib
from collections.abc import Sequence
from datetime import timedelta
from typing import Any, cast

import structlog
from starlette.requests import Request
from starlette.responses import Response

from flyware.cache.ports.outbound import CacheAdapter
from flyware.container.ordering import HIGHEST_PRECEDENCE, order
from flyware.web.filters import OncePerRequestFilter
from flyware.web.ports.filter import CallNext

logger = structlog.get_logger("flyware.cache")

DEFAULT_KEY_PREFIX = "flyware.page"

_MAX_RAW_KEY_LENGTH = 200


@order(HIGHEST_PRECEDENCE + 600)
class ResponseCacheFilter(OncePerRequestFilter):
    """Serves repeated GET requests from the cache.

    Entries are keyed by the request URI (path plus query string).  Only 2xx
    responses are stored.  Cache backend failures are logged and the request
    is served as if the cache were empty.
    """

    def __init__(
        self,
        cache: CacheAdapter,
        ttl: timedelta | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        url_patterns: Sequence[str] = (),
    ) -> None:
        self._cache = cache
        self._ttl = ttl
        self._key_prefix = key_prefix
        self.url_patterns = list(url_patterns)

    def cache_key(self, request: Request) -> str:
        """Build the cache key; URIs longer than 200 characters are SHA-1 hashed."""
        uri = request.url.path
        if request.url.query:
            uri = f"{uri}?{request.url.query}"
        if len(uri) > _MAX_RAW_KEY_LENGTH:
            uri = hashlib.sha1(uri.encode()).hexdigest()
        return f"{self._key_prefix}:{uri}"

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        if request.method != "GET":
            return cast(Response, await call_next(request))

        key = self.cache_key(request)
        try:
            cached = await self._cache.get(key)
        except Exception as exc:
            logger.warning("response_cache_read_failed", key=key, error=str(exc))
            cached = None

        if cached is not None:
            return _restore(cached)

        response = cast(Response, await call_next(request))
        if 200 <= response.status_code < 300:
            try:
                await self._cache.put(key, _snapshot(response), ttl=self._ttl)
            except Exception as exc:
                logger.warning("response_cache_write_failed", key=key, error=str(exc))
        return response


def _snapshot(response: Response) -> dict[str, Any]:
    """JSON-compatible copy of *response*."""
    return {
        "status": response.status_code,
        "headers": [[k.decode("latin-1"), v.decode("latin-1")] for k, v in response.raw_headers],
        "body": base64.b64encode(response.body).decode("ascii"),
    }


def _restore(snapshot: dict[str, Any]) -> Response:
    response = Response(content=base64.b64decode(snapshot["body"]), status_code=int(snapshot["status"]))
    response.raw_headers[:] = [(k.encode("latin-1"), v.encode("latin-1")) for k, v in snapshot["headers"]]
    return response
