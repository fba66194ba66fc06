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
"""Web filter configuration properties."""

from __future__ import annotations

from dataclasses import dataclass, field

from flyware.core.config import config_properties


@config_properties(prefix="flyware.web.cors")
@dataclass
class CorsProperties:
    """Configuration for the CORS filter (flyware.web.cors.*)."""

    enabled: bool = False
    allow_origins: list[str] = field(default_factory=lambda: ["*"])
    allow_methods: list[str] = field(default_factory=lambda: ["GET", "POST", "HEAD"])
    allow_headers: list[str] = field(default_factory=lambda: ["Origin", "Accept", "Content-Type"])
    expose_headers: list[str] = field(default_factory=list)
    allow_credentials: bool = False
    max_age: int = 0


@config_properties(prefix="flyware.web.gzip")
@dataclass
class GzipProperties:
    """Configuration for the gzip filter (flyware.web.gzip.*)."""

    enabled: bool = False
    level: int = -1


@config_properties(prefix="flyware.web.favicon")
@dataclass
class FaviconProperties:
    """Configuration for the favicon filter (flyware.web.favicon.*)."""

    enabled: bool = False
    path: str = "favicon.ico"
    max_age: int = 60 * 60 * 24 * 365


@config_properties(prefix="flyware.web.request-logging")
@dataclass
class RequestLoggingProperties:
    """Configuration for the request logging filter (flyware.web.request-logging.*)."""

    enabled: bool = True
    logger: str = "flyware.web"
