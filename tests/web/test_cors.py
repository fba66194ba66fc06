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
"""Tests for the CORS policy and CorsFilter."""

from __future__ import annotations

from datetime import timedelta

import pytest
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from flyware.kernel.exceptions import ConfigurationException
from flyware.web.adapters.starlette.app import create_app
from flyware.web.adapters.starlette.filters import CorsFilter
from flyware.web.cors import (
    CORSConfig,
    CorsPolicy,
    canonical_header_key,
    normalize_values,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

calls: list[str] = []


async def foo(request):
    calls.append(request.method)
    return PlainTextResponse("bar")


ROUTES = [Route("/foo", foo, methods=["GET", "POST", "OPTIONS"])]


def make_client(config: CORSConfig) -> TestClient:
    calls.clear()
    return TestClient(create_app(routes=ROUTES, filters=[CorsFilter(config)]))


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


class TestNormalizeValues:
    def test_trims_lowercases_and_dedupes(self):
        assert normalize_values([" http-Access ", "Post", "POST", " poSt  ", "HTTP-Access", ""]) == [
            "http-access",
            "post",
            "",
        ]

    def test_idempotent(self):
        values = [" A ", "b", "B", "c "]
        once = normalize_values(values)
        assert normalize_values(once) == once

    def test_empty(self):
        assert normalize_values([]) == []
        assert normalize_values(None) == []


class TestCanonicalHeaderKey:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("x-user", "X-User"),
            ("xPassword", "Xpassword"),
            ("content-type", "Content-Type"),
            ("ACCEPT", "Accept"),
        ],
    )
    def test_canonical_form(self, raw, expected):
        assert canonical_header_key(raw) == expected

    def test_invalid_token_unchanged(self):
        assert canonical_header_key("bad header") == "bad header"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestOriginValidation:
    def test_default_allows_all(self):
        policy = CorsPolicy()
        assert policy.allow_all_origins is True

    def test_wildcard_with_predicate_rejected(self):
        with pytest.raises(ConfigurationException) as exc_info:
            CorsPolicy(CORSConfig(allow_origins=["*"], allow_origin_predicate=lambda o: True))
        assert exc_info.value.code == "CORS_WILDCARD_WITH_PREDICATE"

    def test_wildcard_mixed_with_origins_rejected(self):
        with pytest.raises(ConfigurationException) as exc_info:
            CorsPolicy(CORSConfig(allow_origins=["http://google.com", "*"]))
        assert exc_info.value.code == "CORS_WILDCARD_MIXED"

    @pytest.mark.parametrize("origin", ["example.com", "ftp://x.com", "//example.com"])
    def test_origin_without_http_scheme_rejected(self, origin):
        with pytest.raises(ConfigurationException) as exc_info:
            CorsPolicy(CORSConfig(allow_origins=[origin]))
        assert exc_info.value.code == "CORS_INVALID_ORIGIN"

    def test_empty_origins_require_predicate(self):
        with pytest.raises(ConfigurationException) as exc_info:
            CorsPolicy(CORSConfig(allow_origins=[]))
        assert exc_info.value.code == "CORS_NO_ORIGIN"

    def test_empty_origins_with_predicate_accepted(self):
        policy = CorsPolicy(CORSConfig(allow_origins=[], allow_origin_predicate=lambda o: True))
        assert policy.allow_all_origins is False

    def test_duplicated_wildcard_collapses_to_allow_all(self):
        policy = CorsPolicy(CORSConfig(allow_origins=[" * ", "*"]))
        assert policy.allow_all_origins is True

    def test_negative_max_age_rejected(self):
        with pytest.raises(ConfigurationException):
            CorsPolicy(CORSConfig(max_age=-1))

    def test_policy_is_immutable(self):
        policy = CorsPolicy()
        with pytest.raises(AttributeError):
            policy._allow_credentials = True  # type: ignore[misc]


class TestIsOriginAllowed:
    def test_exact_match_after_normalization(self):
        policy = CorsPolicy(CORSConfig(allow_origins=[" http://Google.com "]))
        assert policy.is_origin_allowed("http://google.com")
        # Request origins are compared as sent.
        assert not policy.is_origin_allowed("http://Google.com")
        assert not policy.is_origin_allowed("http://example.com")

    def test_predicate_receives_raw_origin(self):
        seen: list[str] = []

        def predicate(origin: str) -> bool:
            seen.append(origin)
            return origin.endswith(".example.com")

        policy = CorsPolicy(CORSConfig(allow_origins=["http://google.com"], allow_origin_predicate=predicate))
        assert policy.is_origin_allowed("http://google.com")
        assert seen == []
        assert policy.is_origin_allowed("https://API.example.com")
        assert seen == ["https://API.example.com"]
        assert not policy.is_origin_allowed("https://evil.org")

    def test_predicate_exception_propagates(self):
        def predicate(origin: str) -> bool:
            raise RuntimeError("boom")

        policy = CorsPolicy(CORSConfig(allow_origins=[], allow_origin_predicate=predicate))
        with pytest.raises(RuntimeError):
            policy.is_origin_allowed("http://example.com")


# ---------------------------------------------------------------------------
# Header sets
# ---------------------------------------------------------------------------


class TestHeaderSets:
    def test_allow_all_headers(self):
        policy = CorsPolicy(
            CORSConfig(
                allow_origins=["*"],
                allow_methods=["get", "post", "put"],
                allow_headers=["Content-type", "timeStamp "],
                expose_headers=["x-user", "xPassword"],
                allow_credentials=True,
                max_age=timedelta(hours=12),
            )
        )

        assert policy.normal_headers == (
            ("Access-Control-Allow-Credentials", "true"),
            ("Access-Control-Expose-Headers", "X-User,Xpassword"),
            ("Access-Control-Allow-Origin", "*"),
        )
        assert policy.preflight_headers == (
            ("Access-Control-Allow-Credentials", "true"),
            ("Access-Control-Allow-Methods", "GET,POST,PUT"),
            ("Access-Control-Allow-Headers", "Content-Type,Timestamp"),
            ("Access-Control-Max-Age", "43200"),
            ("Access-Control-Allow-Origin", "*"),
        )

    def test_specific_origin_headers(self):
        policy = CorsPolicy(
            CORSConfig(
                allow_origins=["http://google.com"],
                allow_methods=[],
                allow_headers=[],
            )
        )

        assert policy.normal_headers == (("Vary", "Origin"),)
        assert policy.preflight_headers == (
            ("Vary", "Origin"),
            ("Vary", "Access-Control-Request-Method"),
            ("Vary", "Access-Control-Request-Headers"),
        )

    def test_zero_max_age_omitted(self):
        policy = CorsPolicy(CORSConfig(max_age=0))
        assert "Access-Control-Max-Age" not in dict(policy.preflight_headers)

    def test_integer_max_age(self):
        policy = CorsPolicy(CORSConfig(max_age=600))
        assert dict(policy.preflight_headers)["Access-Control-Max-Age"] == "600"

    def test_default_preflight_headers(self):
        policy = CorsPolicy()
        assert policy.preflight_headers == (
            ("Access-Control-Allow-Methods", "GET,POST,HEAD"),
            ("Access-Control-Allow-Headers", "Origin,Accept,Content-Type"),
            ("Access-Control-Allow-Origin", "*"),
        )

    def test_empty_entries_skipped_when_joining(self):
        policy = CorsPolicy(CORSConfig(allow_methods=["", "get"], expose_headers=[""]))
        assert dict(policy.preflight_headers)["Access-Control-Allow-Methods"] == "GET"
        assert "Access-Control-Expose-Headers" not in dict(policy.normal_headers)


# ---------------------------------------------------------------------------
# CorsFilter end to end
# ---------------------------------------------------------------------------


class TestCorsFilterAllowAll:
    def test_no_origin_passes_through_untouched(self):
        client = make_client(CORSConfig())
        resp = client.get("/foo")

        assert resp.status_code == 200
        assert resp.text == "bar"
        assert "access-control-allow-origin" not in resp.headers
        assert calls == ["GET"]

    def test_simple_request(self):
        client = make_client(CORSConfig(expose_headers=["x-user"]))
        resp = client.get("/foo", headers={"Origin": "http://anything.example"})

        assert resp.status_code == 200
        assert resp.text == "bar"
        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.headers["access-control-expose-headers"] == "X-User"
        assert "vary" not in resp.headers


class TestCorsFilterSpecificOrigins:
    CONFIG = CORSConfig(
        allow_origins=["http://google.com"],
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
        allow_credentials=True,
        max_age=timedelta(hours=12),
    )

    def test_denied_origin_gets_403_without_cors_headers(self):
        client = make_client(self.CONFIG)
        resp = client.get("/foo", headers={"Origin": "https://google.com"})

        assert resp.status_code == 403
        assert resp.content == b""
        assert "access-control-allow-origin" not in resp.headers
        assert "vary" not in resp.headers
        assert calls == []

    def test_denied_preflight_gets_403(self):
        client = make_client(self.CONFIG)
        resp = client.options("/foo", headers={"Origin": "http://example.com"})

        assert resp.status_code == 403
        assert calls == []

    def test_allowed_preflight_short_circuits(self):
        client = make_client(self.CONFIG)
        resp = client.options(
            "/foo",
            headers={"Origin": "http://google.com", "Access-Control-Request-Method": "POST"},
        )

        assert resp.status_code == 200
        assert resp.content == b""
        assert calls == []
        assert resp.headers["access-control-allow-credentials"] == "true"
        assert resp.headers["access-control-allow-methods"] == "GET,POST"
        assert resp.headers["access-control-allow-headers"] == "Content-Type"
        assert resp.headers["access-control-max-age"] == "43200"
        assert resp.headers["access-control-allow-origin"] == "http://google.com"
        assert resp.headers.get_list("vary") == [
            "Origin",
            "Access-Control-Request-Method",
            "Access-Control-Request-Headers",
        ]

    def test_allowed_simple_request_runs_handler(self):
        client = make_client(self.CONFIG)
        resp = client.get("/foo", headers={"Origin": "http://google.com"})

        assert resp.status_code == 200
        assert resp.text == "bar"
        assert calls == ["GET"]
        assert resp.headers["access-control-allow-credentials"] == "true"
        assert resp.headers["access-control-allow-origin"] == "http://google.com"
        assert resp.headers.get_list("vary") == ["Origin"]

    def test_echo_without_credentials(self):
        client = make_client(CORSConfig(allow_origins=["http://google.com"]))
        resp = client.get("/foo", headers={"Origin": "http://google.com"})

        assert resp.headers["access-control-allow-origin"] == "http://google.com"
        assert "access-control-allow-credentials" not in resp.headers


class TestCorsFilterPredicate:
    def test_predicate_allows_origin(self):
        client = make_client(
            CORSConfig(allow_origins=[], allow_origin_predicate=lambda o: o == "https://github.com")
        )

        allowed = client.get("/foo", headers={"Origin": "https://github.com"})
        denied = client.get("/foo", headers={"Origin": "https://gitlab.com"})

        assert allowed.status_code == 200
        assert allowed.headers["access-control-allow-origin"] == "https://github.com"
        assert denied.status_code == 403

    def test_predicate_exception_is_server_error(self):
        def predicate(origin: str) -> bool:
            raise RuntimeError("predicate failed")

        client = TestClient(
            create_app(
                routes=ROUTES,
                filters=[CorsFilter(CORSConfig(allow_origins=[], allow_origin_predicate=predicate))],
            ),
            raise_server_exceptions=False,
        )
        resp = client.get("/foo", headers={"Origin": "http://example.com"})

        assert resp.status_code == 500

    def test_filter_accepts_prebuilt_policy(self):
        policy = CorsPolicy(CORSConfig(allow_origins=["http://google.com"]))
        assert CorsFilter(policy).policy is policy


class TestScenarios:
    def test_google_only_with_github_predicate(self):
        client = make_client(
            CORSConfig(
                allow_origins=["http://google.com"],
                allow_origin_predicate=lambda origin: origin == "http://github.com",
                allow_methods=["GET", "POST", "PUT"],
                allow_headers=["Content-Type"],
                max_age=timedelta(hours=12),
            )
        )

        plain = client.get("/foo")
        assert plain.text == "bar"
        assert not any(h.startswith("access-control-") for h in plain.headers)

        google = client.get("/foo", headers={"Origin": "http://google.com"})
        assert google.status_code == 200
        assert google.headers["access-control-allow-origin"] == "http://google.com"

        https_google = client.get("/foo", headers={"Origin": "https://google.com"})
        assert https_google.status_code == 403
        assert not any(h.startswith("access-control-") for h in https_google.headers)

        preflight = client.options("/foo", headers={"Origin": "http://github.com"})
        assert preflight.status_code == 200
        assert preflight.content == b""
        assert preflight.headers["access-control-allow-methods"] == "GET,POST,PUT"
        assert preflight.headers["access-control-allow-headers"] == "Content-Type"
        assert preflight.headers["access-control-max-age"] == "43200"
        assert preflight.headers["access-control-allow-origin"] == "http://github.com"

    @pytest.mark.parametrize("origin", ["http://a.example", "https://b.example:8443", "null"])
    def test_allow_all(self, origin):
        client = make_client(CORSConfig(allow_origins=["*"]))

        resp = client.get("/foo", headers={"Origin": origin})
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"

        preflight = client.options("/foo", headers={"Origin": origin})
        assert preflight.status_code == 200
        assert preflight.content == b""
        assert preflight.headers["access-control-allow-origin"] == "*"
