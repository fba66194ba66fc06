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
"""Builds the built-in filter chain from configuration.

Each add-on is switched on by its ``enabled`` property::

    flyware:
      web:
        cors:
          enabled: true
          allow-origins: ["https://app.example.com"]
        gzip:
          enabled: true
      session:
        enabled: true
        store: redis
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from typing import Any

import structlog

from flyware.cache.adapters.memory import InMemoryCache
from flyware.cache.adapters.redis import RedisCacheAdapter
from flyware.cache.filter import ResponseCacheFilter
from flyware.cache.ports.outbound import CacheAdapter
from flyware.config.properties.cache import CacheProperties
from flyware.config.properties.security import JWTProperties
from flyware.config.properties.session import SessionProperties
from flyware.config.properties.web import (
    CorsProperties,
    FaviconProperties,
    GzipProperties,
    RequestLoggingProperties,
)
from flyware.core.config import Config
from flyware.kernel.exceptions import ConfigurationException
from flyware.security.jwt_auth import JWTAuthenticator
from flyware.session.adapters.memory import InMemorySessionStore
from flyware.session.adapters.redis import RedisSessionStore
from flyware.session.filter import CookieSessionFilter, SessionFilter
from flyware.web.adapters.starlette.filters import (
    CorsFilter,
    FaviconFilter,
    GzipFilter,
    JWTAuthFilter,
    RequestLoggingFilter,
)
from flyware.web.cors import CorsPolicy, OriginPredicate
from flyware.web.ports.filter import WebFilter

logger = structlog.get_logger("flyware.web")


def filters_from_config(
    config: Config,
    *,
    allow_origin_predicate: OriginPredicate | None = None,
    jwt_authenticate: Callable[[Any], Any] | None = None,
    jwt_authorize: Callable[[str, Any], Any] | None = None,
) -> list[WebFilter]:
    """Instantiate every enabled built-in filter.

    Callbacks that cannot be expressed in a config file (the CORS origin
    predicate and the JWT ``authenticate``/``authorize`` hooks) are passed in
    directly.  Invalid settings raise :class:`ConfigurationException`.
    """
    filters: list[WebFilter] = []

    logging_props = config.bind(RequestLoggingProperties)
    if logging_props.enabled:
        filters.append(RequestLoggingFilter(structlog.get_logger(logging_props.logger)))

    cors_props = config.bind(CorsProperties)
    if cors_props.enabled:
        filters.append(CorsFilter(CorsPolicy.from_properties(cors_props, allow_origin_predicate)))

    favicon_props = config.bind(FaviconProperties)
    if favicon_props.enabled:
        filters.append(FaviconFilter(favicon_props.path, favicon_props.max_age))

    gzip_props = config.bind(GzipProperties)
    if gzip_props.enabled:
        filters.append(GzipFilter(gzip_props.level))

    session_props = config.bind(SessionProperties)
    if session_props.enabled:
        filters.append(_session_filter(session_props))

    jwt_props = config.bind(JWTProperties)
    if jwt_props.enabled:
        authenticator = JWTAuthenticator.from_properties(
            jwt_props, jwt_authenticate, authorize=jwt_authorize
        )
        filters.append(JWTAuthFilter(authenticator, exclude_patterns=jwt_props.exclude_patterns))

    cache_props = config.bind(CacheProperties)
    if cache_props.enabled:
        filters.append(
            ResponseCacheFilter(
                _cache_adapter(cache_props),
                ttl=timedelta(seconds=cache_props.ttl),
                key_prefix=cache_props.key_prefix,
                url_patterns=cache_props.url_patterns,
            )
        )

    logger.info("filters_configured", filters=[type(f).__name__ for f in filters])
    return filters


def _session_filter(props: SessionProperties) -> WebFilter:
    cookie_options: dict[str, Any] = {
        "secure": props.secure,
        "http_only": props.http_only,
        "same_site": props.same_site,
    }

    if props.store == "cookie":
        return CookieSessionFilter(
            props.secret_keys,
            props.cookie_name,
            props.ttl,
            max_length=props.max_length,
            **cookie_options,
        )

    if props.store == "redis":
        import redis.asyncio as aioredis

        client = aioredis.from_url(str(props.redis.get("url", "redis://localhost:6379/0")))
        store: Any = RedisSessionStore(client, max_length=props.max_length)
    elif props.store == "memory":
        store = InMemorySessionStore()
    else:
        raise ConfigurationException(
            f"Unknown session store '{props.store}'",
            code="SESSION_UNKNOWN_STORE",
        )

    return SessionFilter(store, props.cookie_name, props.ttl, **cookie_options)


def _cache_adapter(props: CacheProperties) -> CacheAdapter:
    if props.provider == "redis":
        import redis.asyncio as aioredis

        client = aioredis.from_url(str(props.redis.get("url", "redis://localhost:6379/0")))
        return RedisCacheAdapter(client)
    if props.provider == "memory":
        return InMemoryCache()
    raise ConfigurationException(
        f"Unknown cache provider '{props.provider}'",
        code="CACHE_UNKNOWN_PROVIDER",
    )
