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
"""flyware web: filter chain, CORS policy and the built-in filters.

Quick start::

    from flyware.web import CORSConfig, CorsFilter, create_app

    app = create_app(
        routes=[...],
        filters=[CorsFilter(CORSConfig(allow_origins=["https://app.example.com"]))],
    )
"""

from flyware.web.adapters.starlette.app import create_app
from flyware.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from flyware.web.adapters.starlette.filters import (
    CorsFilter,
    FaviconFilter,
    GzipFilter,
    JWTAuthFilter,
    RequestLoggingFilter,
)
from flyware.web.cors import CORSConfig, CorsPolicy
from flyware.web.filters import OncePerRequestFilter
from flyware.web.ports.filter import CallNext, WebFilter

__all__ = [
    "CORSConfig",
    "CallNext",
    "CorsFilter",
    "CorsPolicy",
    "FaviconFilter",
    "GzipFilter",
    "JWTAuthFilter",
    "OncePerRequestFilter",
    "RequestLoggingFilter",
    "WebFilter",
    "WebFilterChainMiddleware",
    "create_app",
]
