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
"""JWTAuthenticator: login, refresh and per-request token validation.

Clients obtain a token by calling the login endpoint, which delegates the
credential check to a user-supplied ``authenticate`` callback.  The token is
then sent on every request, by default as ``Authorization: Bearer <token>``.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from flyware.config.properties.security import JWTProperties
from flyware.kernel.exceptions import (
    ConfigurationException,
    SecurityException,
    UnauthorizedException,
)
from flyware.security.jwt import JWTService

FORBIDDEN_MESSAGE = "You don't have permission to access."

TokenExtractor = Callable[[Any], str]


def token_extractor(token_lookup: str) -> TokenExtractor:
    """Build a token extractor from a ``"<source>:<name>"`` lookup string.

    Supported sources are ``header`` (expects ``Bearer <token>``), ``query``
    and ``cookie``.

    Raises:
        ConfigurationException: On an unknown source or a missing name.
    """
    source, _, name = token_lookup.partition(":")
    if not name:
        raise ConfigurationException(
            f"Invalid token lookup '{token_lookup}'",
            code="JWT_INVALID_TOKEN_LOOKUP",
        )

    if source == "header":

        def _from_header(request: Any) -> str:
            value = request.headers.get(name, "")
            if not value:
                raise UnauthorizedException("empty auth header", code="TOKEN_MISSING")
            scheme, _, token = value.partition(" ")
            if scheme != "Bearer" or not token:
                raise UnauthorizedException("invalid auth header", code="TOKEN_MALFORMED")
            return token

        return _from_header

    if source == "query":

        def _from_query(request: Any) -> str:
            token = request.query_params.get(name, "")
            if not token:
                raise UnauthorizedException("empty query token", code="TOKEN_MISSING")
            return str(token)

        return _from_query

    if source == "cookie":

        def _from_cookie(request: Any) -> str:
            token = request.cookies.get(name, "")
            if not token:
                raise UnauthorizedException("empty cookie token", code="TOKEN_MISSING")
            return str(token)

        return _from_cookie

    raise ConfigurationException(
        f"Invalid token source '{source}'",
        code="JWT_INVALID_TOKEN_LOOKUP",
    )


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class JWTAuthenticator:
    """Glue between HTTP requests and :class:`JWTService`.

    Args:
        jwt_service: Signs and verifies tokens.
        authenticate: ``(request) -> user_id``, sync or async.  Returning
            ``None`` or raising :class:`UnauthorizedException` rejects the login.
        realm: Realm reported in ``WWW-Authenticate``.
        authorize: ``(user_id, request) -> bool``, sync or async.  Defaults to
            allowing every authenticated user.
        payload_func: ``(user_id) -> dict`` of extra claims added at login.
        unauthorized: ``(request, status_code, message) -> Response`` replacing
            the default JSON error body.
        token_lookup: Where to read the token from, e.g. ``"header:Authorization"``,
            ``"query:token"`` or ``"cookie:jwt"``.
        payload_key: Name of the ``request.state`` attribute holding the claims.
    """

    def __init__(
        self,
        jwt_service: JWTService,
        authenticate: Callable[[Any], Any] | None,
        *,
        realm: str = "flyware",
        authorize: Callable[[str, Any], Any] | None = None,
        payload_func: Callable[[str], dict[str, Any]] | None = None,
        unauthorized: Callable[[Any, int, str], Response] | None = None,
        token_lookup: str = "header:Authorization",
        payload_key: str = "jwt_payload",
    ) -> None:
        if authenticate is None:
            raise ConfigurationException(
                "An authenticate callback is required",
                code="JWT_NO_AUTHENTICATOR",
            )
        self._jwt = jwt_service
        self._authenticate = authenticate
        self._realm = realm
        self._authorize = authorize
        self._payload_func = payload_func
        self._unauthorized = unauthorized
        self._extract_token = token_extractor(token_lookup)
        self._payload_key = payload_key or "jwt_payload"

    @classmethod
    def from_properties(
        cls,
        props: JWTProperties,
        authenticate: Callable[[Any], Any],
        **kwargs: Any,
    ) -> JWTAuthenticator:
        """Build an authenticator from bound ``flyware.security.jwt`` properties."""
        service = JWTService(
            props.secret,
            algorithm=props.algorithm,
            timeout=timedelta(seconds=props.timeout),
            max_refresh=timedelta(seconds=props.max_refresh),
        )
        return cls(
            service,
            authenticate,
            realm=props.realm,
            token_lookup=props.token_lookup,
            payload_key=props.payload_key,
            **kwargs,
        )

    @property
    def jwt_service(self) -> JWTService:
        return self._jwt

    @property
    def payload_key(self) -> str:
        return self._payload_key

    def extract_token(self, request: Any) -> str:
        """Read the raw token from *request*; raises :class:`UnauthorizedException`."""
        return self._extract_token(request)

    def authenticate_request(self, request: Any) -> dict[str, Any]:
        """Return the verified claims of the token carried by *request*.

        Raises:
            SecurityException: If the token is missing, invalid, expired or
                has no subject.
        """
        claims = self._jwt.decode(self.extract_token(request))
        if claims.get("sub") is None:
            raise UnauthorizedException("token has no subject", code="INVALID_TOKEN")
        return claims

    async def is_authorized(self, user_id: str, request: Any) -> bool:
        if self._authorize is None:
            return True
        return bool(await _resolve(self._authorize(user_id, request)))

    def unauthorized(self, request: Any, status_code: int, message: str) -> Response:
        """Build the error response for a rejected request."""
        if self._unauthorized is not None:
            response = self._unauthorized(request, status_code, message)
        else:
            response = JSONResponse({"code": status_code, "message": message}, status_code=status_code)
        response.headers["WWW-Authenticate"] = f"JWT realm={self._realm}"
        return response

    async def login(self, request: Any) -> Response:
        """Endpoint issuing a token once ``authenticate`` accepts the request."""
        try:
            user_id = await _resolve(self._authenticate(request))
        except UnauthorizedException as exc:
            return self.unauthorized(request, 401, str(exc))
        if not user_id:
            return self.unauthorized(request, 401, "incorrect credentials")

        user_id = str(user_id)
        extra = self._payload_func(user_id) if self._payload_func is not None else None
        issued = self._jwt.issue(user_id, extra)
        return JSONResponse(issued.to_dict())

    async def refresh(self, request: Any) -> Response:
        """Endpoint re-issuing the presented token if it is still refreshable."""
        try:
            issued = self._jwt.refresh(self.extract_token(request))
        except SecurityException as exc:
            return self.unauthorized(request, 401, str(exc))
        return JSONResponse(issued.to_dict())

    def routes(self, login_path: str = "/login", refresh_path: str = "/refresh_token") -> list[Route]:
        """Starlette routes for the login (POST) and refresh (GET) endpoints."""
        return [
            Route(login_path, self.login, methods=["POST"]),
            Route(refresh_path, self.refresh, methods=["GET"]),
        ]
