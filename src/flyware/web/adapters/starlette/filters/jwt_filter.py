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
"""JWT authentication filter: rejects requests without a valid token."""

from __future__ import annotations

from collections.abc import Sequence
from typing import cast

import structlog
from starlette.requests import Request
from starlette.responses import Response

from flyware.container.ordering import HIGHEST_PRECEDENCE, order
from flyware.kernel.exceptions import SecurityException
from flyware.security.jwt import context_from_claims
from flyware.security.jwt_auth import FORBIDDEN_MESSAGE, JWTAuthenticator
from flyware.web.filters import OncePerRequestFilter
from flyware.web.ports.filter import CallNext

logger = structlog.get_logger("flyware.security")


@order(HIGHEST_PRECEDENCE + 500)
class JWTAuthFilter(OncePerRequestFilter):
    """Validates the request token and exposes the caller to the route.

    On success the claims are stored on ``request.state.<payload_key>``, the
    subject on ``request.state.user_id`` and a :class:`SecurityContext` on
    ``request.state.security_context``.  A missing or invalid token yields
    ``401``; a caller refused by ``authorize`` yields ``403``.
    """

    def __init__(
        self,
        authenticator: JWTAuthenticator,
        exclude_patterns: Sequence[str] = (),
    ) -> None:
        self._authenticator = authenticator
        self.exclude_patterns = list(exclude_patterns)

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        auth = self._authenticator
        try:
            claims = auth.authenticate_request(request)
        except SecurityException as exc:
            logger.debug("jwt_rejected", path=request.url.path, reason=str(exc), code=exc.code)
            return auth.unauthorized(request, 401, str(exc))

        context = context_from_claims(claims)
        setattr(request.state, auth.payload_key, claims)
        request.state.user_id = context.user_id
        request.state.security_context = context

        if not await auth.is_authorized(cast(str, context.user_id), request):
            return auth.unauthorized(request, 403, FORBIDDEN_MESSAGE)

        return cast(Response, await call_next(request))
