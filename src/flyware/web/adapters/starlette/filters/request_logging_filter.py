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
"""Request logging filter: logs status, method, path, client ip, latency and user agent."""

from __future__ import annotations

import time
from typing import Any, cast

import structlog
from starlette.requests import Request
from starlette.responses import Response

from flyware.container.ordering import HIGHEST_PRECEDENCE, order
from flyware.web.filters import OncePerRequestFilter
from flyware.web.ports.filter import CallNext


def client_ip(request: Request) -> str | None:
    """Best-effort client address, honouring ``X-Forwarded-For`` and ``X-Real-Ip``."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


@order(HIGHEST_PRECEDENCE + 100)
class RequestLoggingFilter(OncePerRequestFilter):
    """Logs one event per request.

    Successful requests are logged at ``info``; requests that raise or end
    with a 5xx status are logged at ``error``.  Any structlog-style logger
    (``logger.info(event, **fields)``) can be supplied.
    """

    def __init__(self, logger: Any = None) -> None:
        self._logger = logger if logger is not None else structlog.get_logger("flyware.web")

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        start = time.perf_counter()
        # Downstream filters may rewrite the path.
        path = request.url.path
        fields = {
            "method": request.method,
            "path": path,
            "ip": client_ip(request),
            "user_agent": request.headers.get("user-agent"),
        }

        try:
            response = cast(Response, await call_next(request))
        except Exception as exc:
            self._logger.error(
                "http_request_failed",
                latency_ms=_elapsed_ms(start),
                error=str(exc),
                error_type=type(exc).__name__,
                **fields,
            )
            raise

        log = self._logger.error if response.status_code >= 500 else self._logger.info
        log(
            "http_request",
            status=response.status_code,
            latency_ms=_elapsed_ms(start),
            **fields,
        )
        return response


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
