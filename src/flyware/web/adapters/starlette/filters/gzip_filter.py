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
"""Gzip filter: compresses response bodies for clients that accept gzip."""

from __future__ import annotations

import posixpath
import zlib
from typing import cast

from starlette.requests import Request
from starlette.responses import Response

from flyware.container.ordering import HIGHEST_PRECEDENCE, order
from flyware.kernel.exceptions import ConfigurationException
from flyware.web.filters import OncePerRequestFilter
from flyware.web.ports.filter import CallNext

BEST_COMPRESSION = zlib.Z_BEST_COMPRESSION
BEST_SPEED = zlib.Z_BEST_SPEED
DEFAULT_COMPRESSION = zlib.Z_DEFAULT_COMPRESSION
NO_COMPRESSION = zlib.Z_NO_COMPRESSION

# Already-compressed image formats.
_SKIPPED_EXTENSIONS = frozenset({".png", ".gif", ".jpeg", ".jpg"})

_GZIP_WBITS = 16 + zlib.MAX_WBITS


def should_compress(request: Request) -> bool:
    """Return ``True`` if the client accepts gzip and the path is not an image."""
    if "gzip" not in request.headers.get("accept-encoding", ""):
        return False
    ext = posixpath.splitext(request.url.path)[1].lower()
    return ext not in _SKIPPED_EXTENSIONS


@order(HIGHEST_PRECEDENCE + 300)
class GzipFilter(OncePerRequestFilter):
    """Gzip-encodes the buffered response body.

    Responses that are empty or already carry a ``Content-Encoding`` are left
    as they are.

    Raises:
        ConfigurationException: If *level* is outside ``-1..9``.
    """

    def __init__(self, level: int = DEFAULT_COMPRESSION) -> None:
        if not DEFAULT_COMPRESSION <= level <= BEST_COMPRESSION:
            raise ConfigurationException(
                f"Invalid gzip compression level {level}",
                code="GZIP_INVALID_LEVEL",
                context={"level": level},
            )
        self._level = level

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        response = cast(Response, await call_next(request))
        if not should_compress(request):
            return response
        if not response.body or "content-encoding" in response.headers:
            return response

        compressor = zlib.compressobj(self._level, zlib.DEFLATED, _GZIP_WBITS)
        body = compressor.compress(response.body) + compressor.flush()

        response.body = body
        response.headers["Content-Encoding"] = "gzip"
        response.headers["Content-Length"] = str(len(body))
        response.headers.append("Vary", "Accept-Encoding")
        return response
