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
"""Tests for building the built-in filters from configuration."""

from __future__ import annotations

import pytest
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from flyware.cache.adapters.memory import InMemoryCache
from flyware.cache.filter import ResponseCacheFilter
from flyware.core.config import Config
from flyware.kernel.exceptions import ConfigurationException
from flyware.session.filter import CookieSessionFilter, SessionFilter
from flyware.web.adapters.starlette.app import create_app
from flyware.web.adapters.starlette.filters import (
    CorsFilter,
    FaviconFilter,
    GzipFilter,
    JWTAuthFilter,
    RequestLoggingFilter,
)
from flyware.web.auto_configuration import filters_from_config


def _types(filters) -> list[type]:
    return [type(f) for f in filters]


class TestFiltersFromConfig:
    def test_defaults_only_request_logging(self):
        filters = filters_from_config(Config({}))
        assert _types(filters) == [RequestLoggingFilter]

    def test_request_logging_can_be_disabled(self):
        config = Config({"flyware": {"web": {"request-logging": {"enabled": False}}}})
        assert filters_from_config(config) == []

    def test_all_filters_enabled(self, tmp_path):
        icon = tmp_path / "favicon.ico"
        icon.write_bytes(b"icon")
        config = Config(
            {
                "flyware": {
                    "web": {
                        "cors": {"enabled": True, "allow-origins": ["http://google.com"]},
                        "gzip": {"enabled": True, "level": 9},
                        "favicon": {"enabled": True, "path": str(icon)},
                    },
                    "session": {"enabled": True, "store": "memory"},
                    "security": {"jwt": {"enabled": True, "secret": "s" * 32}},
                    "cache": {"enabled": True, "provider": "memory", "ttl": 60},
                }
            }
        )

        filters = filters_from_config(config, jwt_authenticate=lambda request: "alice")

        assert set(_types(filters)) == {
            RequestLoggingFilter,
            CorsFilter,
            FaviconFilter,
            GzipFilter,
            SessionFilter,
            JWTAuthFilter,
            ResponseCacheFilter,
        }
        cors = next(f for f in filters if isinstance(f, CorsFilter))
        assert cors.policy.allow_origins == ("http://google.com",)
        cache = next(f for f in filters if isinstance(f, ResponseCacheFilter))
        assert isinstance(cache._cache, InMemoryCache)

    def test_cookie_session_store(self):
        config = Config(
            {"flyware": {"session": {"enabled": True, "store": "cookie", "secret-keys": ["k" * 32]}}}
        )
        filters = filters_from_config(config)
        assert CookieSessionFilter in _types(filters)

    def test_cors_predicate_passed_through(self):
        config = Config({"flyware": {"web": {"cors": {"enabled": True, "allow-origins": []}}}})
        filters = filters_from_config(config, allow_origin_predicate=lambda origin: True)
        cors = next(f for f in filters if isinstance(f, CorsFilter))
        assert cors.policy.is_origin_allowed("http://anything.example")

    def test_invalid_cors_config_rejected(self):
        config = Config({"flyware": {"web": {"cors": {"enabled": True, "allow-origins": ["google.com"]}}}})
        with pytest.raises(ConfigurationException):
            filters_from_config(config)

    def test_jwt_without_authenticate_rejected(self):
        config = Config({"flyware": {"security": {"jwt": {"enabled": True, "secret": "s" * 32}}}})
        with pytest.raises(ConfigurationException) as exc_info:
            filters_from_config(config)
        assert exc_info.value.code == "JWT_NO_AUTHENTICATOR"

    def test_jwt_without_secret_rejected(self):
        config = Config({"flyware": {"security": {"jwt": {"enabled": True}}}})
        with pytest.raises(ConfigurationException) as exc_info:
            filters_from_config(config, jwt_authenticate=lambda request: "alice")
        assert exc_info.value.code == "JWT_NO_SECRET"

    def test_unknown_session_store_rejected(self):
        config = Config({"flyware": {"session": {"enabled": True, "store": "mongo"}}})
        with pytest.raises(ConfigurationException) as exc_info:
            filters_from_config(config)
        assert exc_info.value.code == "SESSION_UNKNOWN_STORE"

    def test_unknown_cache_provider_rejected(self):
        config = Config({"flyware": {"cache": {"enabled": True, "provider": "memcached"}}})
        with pytest.raises(ConfigurationException) as exc_info:
            filters_from_config(config)
        assert exc_info.value.code == "CACHE_UNKNOWN_PROVIDER"

    def test_env_override_enables_filter(self, monkeypatch):
        monkeypatch.setenv("FLYWARE_WEB_GZIP_ENABLED", "true")
        monkeypatch.setenv("FLYWARE_WEB_GZIP_LEVEL", "1")
        filters = filters_from_config(Config({}))
        assert GzipFilter in _types(filters)


class TestConfiguredApp:
    def test_end_to_end(self):
        async def hello(request):
            return PlainTextResponse("hello " * 50)

        config = Config(
            {
                "flyware": {
                    "web": {
                        "cors": {"enabled": True, "allow-origins": ["http://google.com"]},
                        "gzip": {"enabled": True},
                    }
                }
            }
        )
        app = create_app(routes=[Route("/hello", hello)], filters=filters_from_config(config))
        client = TestClient(app)

        resp = client.get(
            "/hello",
            headers={"Origin": "http://google.com", "Accept-Encoding": "gzip"},
        )

        assert resp.status_code == 200
        assert resp.headers["content-encoding"] == "gzip"
        assert resp.headers["access-control-allow-origin"] == "http://google.com"
        assert resp.text == "hello " * 50

        denied = client.get("/hello", headers={"Origin": "http://evil.example"})
        assert denied.status_code == 403
