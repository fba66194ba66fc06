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
"""SQLAlchemy engine construction from ``flyware.db`` configuration."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from flyware.config.properties.data import DatabaseProperties
from flyware.core.config import Config

logger = structlog.get_logger("flyware.data")


def engine_options(props: DatabaseProperties) -> dict[str, Any]:
    """Translate pool settings into ``create_engine`` keyword arguments.

    ``conn_max_lifetime`` maps to ``pool_recycle``, ``max_idle_conns`` to
    ``pool_size`` and the connections allowed beyond it to ``max_overflow``.
    Settings left at ``0`` are omitted.
    """
    options: dict[str, Any] = {"echo": props.echo}
    if props.conn_max_lifetime > 0:
        options["pool_recycle"] = props.conn_max_lifetime
    if props.max_idle_conns > 0:
        options["pool_size"] = props.max_idle_conns
    if props.max_open_conns > 0:
        # 5 is the QueuePool default pool_size.
        idle = props.max_idle_conns if props.max_idle_conns > 0 else 5
        options["max_overflow"] = max(props.max_open_conns - idle, 0)
    return options


def create_engine_from_config(config: Config) -> Engine:
    """Create a SQLAlchemy engine from the ``flyware.db`` section of *config*."""
    props = config.bind(DatabaseProperties)
    options = engine_options(props)
    logger.info("database_engine_created", url=_redact(props.url))
    return create_engine(props.url, **options)


def _redact(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)
