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
"""flyware web application factory built on Starlette."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.routing import BaseRoute

from flyware.container.ordering import get_order
from flyware.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from flyware.web.ports.filter import WebFilter


def create_app(
    routes: Sequence[BaseRoute] | None = None,
    filters: Sequence[WebFilter] = (),
    debug: bool = False,
    lifespan: Any = None,
) -> Starlette:
    """Create a Starlette application running *filters* around *routes*.

    Filters are sorted by ``@order`` (lowest first, i.e. outermost) and run
    inside a single :class:`WebFilterChainMiddleware`.
    """
    ordered = sorted(filters, key=lambda f: get_order(type(f)))
    return Starlette(
        debug=debug,
        routes=list(routes or []),
        middleware=[Middleware(WebFilterChainMiddleware, filters=ordered)],
        lifespan=lifespan,
    )
