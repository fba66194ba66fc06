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
"""CORS filter: evaluates the request origin against a :class:`CorsPolicy`."""

from __future__ import annotations

from typing import cast

import structlog
from starlette.requests import Request
from starlette.responses import Response

from flyware.container.ordering import HIGHEST_PRECEDENCE, order
from flyware.web.cors import ALLOW_ORIGIN, VARY, CORSConfig, CorsPolicy, HeaderPairs
from flyware.web.filters import OncePerRequestFilter
from flyware.web.ports.filter import CallNext

logger = structlog.get_logger("flyware.web.cors")


@order(HIGHEST_PRECEDENCE + 200)
class CorsFilter(OncePerRequestFilter):
    """Applies a CORS policy to every request carrying an ``Origin`` header.

    * No ``Origin``: not a cross-origin request, passed through untouched.
    * Origin denied: ``403`` with an empty body, the route never runs.
    * Allowed ``OPTIONS``: answered here with the preflight headers and ``200``.
    * Allowed otherwise: the route runs and the normal headers are added.
    """

    def __init__(self, policy: CorsPolicy | CORSConfig | None = None) -> None:
        if isinstance(policy, CORSConfig):
            policy = CorsPolicy(policy)
        self._policy = policy or CorsPolicy()

    @property
    def policy(self) -> CorsPolicy:
        return self._policy

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        origin = request.headers.get("origin", "")
        if not origin:
            return cast(Response, await call_next(request))

        if not self._policy.is_origin_allowed(origin):
            logger.debug(
                "cors_origin_denied",
                origin=origin,
                method=request.method,
                path=request.url.path,
            )
            return Response(status_code=403)

        if request.method == "OPTIONS":
            response = Response(status_code=200)
            self._write_headers(response, self._policy.preflight_headers, origin)
            return response

        response = cast(Response, await call_next(request))
        self._write_headers(response, self._policy.normal_headers, origin)
        return response

    def _write_headers(self, response: Response, headers: HeaderPairs, origin: str) -> None:
        for name, value in headers:
            if name == VARY:
                response.headers.append(name, value)
            else:
                response.headers[name] = value
        if self._policy.echo_origin():
            response.headers[ALLOW_ORIGIN] = origin
