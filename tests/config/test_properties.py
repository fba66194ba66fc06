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
"""Tests for the add-on property classes and their binding from Config."""

from flyware.config.properties import (
    CacheProperties,
    CorsProperties,
    DatabaseProperties,
    FaviconProperties,
    GzipProperties,
    JWTProperties,
    RequestLoggingProperties,
    SessionProperties,
)
from flyware.core.config import Config


class TestDefaults:
    def test_cors_defaults(self):
        props = Config({}).bind(CorsProperties)
        assert props.enabled is False
        assert props.allow_origins == ["*"]
        assert props.allow_methods == ["GET", "POST", "HEAD"]
        assert props.allow_headers == ["Origin", "Accept", "Content-Type"]
        assert props.expose_headers == []
        assert props.allow_credentials is False
        assert props.max_age == 0

    def test_web_defaults(self):
        config = Config({})
        assert config.bind(GzipProperties).level == -1
        assert config.bind(FaviconProperties).max_age == 60 * 60 * 24 * 365
        assert config.bind(RequestLoggingProperties).enabled is True

    def test_session_defaults(self):
        props = Config({}).bind(SessionProperties)
        assert props.store == "memory"
        assert props.cookie_name == "FLYWARE_SESSION"
        assert props.max_length == 4096

    def test_cache_defaults(self):
        props = Config({}).bind(CacheProperties)
        assert props.provider == "memory"
        assert props.key_prefix == "flyware.page"

    def test_jwt_defaults(self):
        props = Config({}).bind(JWTProperties)
        assert props.enabled is False
        assert props.token_lookup == "header:Authorization"
        assert props.payload_key == "jwt_payload"

    def test_database_defaults(self):
        props = Config({}).bind(DatabaseProperties)
        assert props.url.startswith("sqlite")
        assert props.max_idle_conns == 0


class TestBinding:
    def test_cors_from_yaml(self, tmp_path):
        config_file = tmp_path / "flyware.yaml"
        config_file.write_text(
            "flyware:\n"
            "  web:\n"
            "    cors:\n"
            "      enabled: true\n"
            "      allow-origins:\n"
            "        - https://app.example.com\n"
            "      allow-credentials: true\n"
            "      max-age: 43200\n"
        )
        props = Config.from_file(config_file).bind(CorsProperties)

        assert props.enabled is True
        assert props.allow_origins == ["https://app.example.com"]
        assert props.allow_credentials is True
        assert props.max_age == 43200

    def test_session_redis_section(self):
        config = Config({"flyware": {"session": {"store": "redis", "redis": {"url": "redis://cache:6379/1"}}}})
        props = config.bind(SessionProperties)
        assert props.store == "redis"
        assert props.redis["url"] == "redis://cache:6379/1"

    def test_env_list_override(self, monkeypatch):
        monkeypatch.setenv("FLYWARE_WEB_CORS_ALLOW_ORIGINS", "http://a.example,http://b.example")
        props = Config({}).bind(CorsProperties)
        assert props.allow_origins == ["http://a.example", "http://b.example"]
