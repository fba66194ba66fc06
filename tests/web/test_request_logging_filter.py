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
"""Tests for RequestLoggingFilter."""

from __future__ import annotations

from typing import Any

import pytest
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from flyware.web.adapters.starlette.app import create_app
from flyware.web.adapters.starlette.filters import RequestLoggingFilter
from flyware.web.adapters.starlette.filters.request_logging_filter import client_ip


class RecordingLogger:
    """Captures structlog-style calls."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str, dict[str, Any]]] = []

    def info(self, event: str, **kw: Any) -> None:
        self.records.append(("info", event, kw))

    def error(self, event: str, **kw: Any) -> None:
        self.records.append(("error", event, kw))


async def ok(request):
    return PlainTextResponse("ok")


async def broken(request):
    return PlainTextResponse("nope", status_code=503)


async def crash(request):
    raise RuntimeError("kaboom")


ROUTES = [Route("/ok", ok), Route("/broken", broken), Route("/crash", crash)]


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def client(logger):
    app = create_app(routes=ROUTES, filters=[RequestLoggingFilter(logger)])
    return TestClient(app, raise_server_exceptions=False)


class TestRequestLoggingFilter:
    def test_success_logged_at_info(self, client, logger):
        client.get("/ok?x=1", headers={"User-Agent": "pytest-agent"})

        level, event, fields = logger.records[0]
        assert level == "info"
        assert event == "http_request"
        assert fields["status"] == 200
        assert fields["method"] == "GET"
        assert fields["path"] == "/ok"
        assert fields["user_agent"] == "pytest-agent"
        assert fields["latency_ms"] >= 0

    def test_server_error_logged_at_error(self, client, logger):
        client.get("/broken")

        level, event, fields = logger.records[0]
        assert level == "error"
        assert fields["status"] == 503

    def test_exception_logged_and_reraised(self, client, logger):
        resp = client.get("/crash")

        assert resp.status_code == 500
        level, event, fields = logger.records[0]
        assert level == "error"
        assert event == "http_request_failed"
        assert fields["error_type"] == "RuntimeError"
        assert fields["error"] == "kaboom"

    def test_forwarded_ip_logged(self, client, logger):
        client.get("/ok", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

        assert logger.records[0][2]["ip"] == "203.0.113.7"

    def test_default_logger(self):
        assert RequestLoggingFilter()._logger is not None


class TestClientIp:
    @staticmethod
    def _request(headers: dict[str, str]) -> Request:
        scope = {
            "type": "http",
            "method": "GET",
            "path": "/",
            "query_string": b"",
            "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
            "client": ("192.0.2.1", 1234),
        }
        return Request(scope)

    def test_real_ip_header(self):
        assert client_ip(self._request({"X-Real-Ip": " 198.51.100.2 "})) == "198.51.100.2"

    def test_falls_back_to_peer(self):
        assert client_ip(self._request({})) == "192.0.2.1"
