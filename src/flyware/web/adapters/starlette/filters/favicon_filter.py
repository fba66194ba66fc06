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
"""Favicon filter: serves ``/favicon.ico`` from memory with caching headers."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import cast

from starlette.requests import Request
from starlette.responses import Response

from flyware.container.ordering import HIGHEST_PRECEDENCE, order
from flyware.web.filters import OncePerRequestFilter
from flyware.web.ports.filter import CallNext

FAVICON_PATH = "/favicon.ico"
DEFAULT_MAX_AGE = 60 * 60 * 24 * 365  # 1 year

_ALLOW = "GET, HEAD, OPTIONS"


@order(HIGHEST_PRECEDENCE + 250)
class FaviconFilter(OncePerRequestFilter):
    """Answers ``/favicon.ico`` without reaching the application.

    The icon is read once at construction, so a missing file fails at
    startup (``OSError`` propagates).  Clients sending a matching
    ``If-None-Match`` get ``304 Not Modified``.
    """

    url_patterns = [FAVICON_PATH]

    def __init__(self, path: str | Path, max_age: int = DEFAULT_MAX_AGE) -> None:
        self._icon = Path(path).read_bytes()
        self._max_age = max_age
        self._etag = hashlib.md5(self._icon).hexdigest()

    @property
    def etag(self) -> str:
        return self._etag

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        if request.url.path != FAVICON_PATH:
            return cast(Response, await call_next(request))

        if request.method not in ("GET", "HEAD"):
            status = 200 if request.method == "OPTIONS" else 405
            return Response(status_code=status, headers={"Allow": _ALLOW})

        headers = {"Cache-Control": f"public, max-age={self._max_age}"}
        if_none_match = request.headers.get("if-none-match")
        if if_none_match is not None:
            if if_none_match == self._etag:
                return Response(status_code=304, headers=headers)
        else:
            headers["ETag"] = self._etag

        body = self._icon if request.method == "GET" else b""
        return Response(content=body, media_type="image/x-icon", headers=headers)
