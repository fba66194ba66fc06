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
"""Typed configuration property classes for each flyware add-on."""

from flyware.config.properties.cache import CacheProperties
from flyware.config.properties.data import DatabaseProperties
from flyware.config.properties.security import JWTProperties
from flyware.config.properties.session import SessionProperties
from flyware.config.properties.web import (
    CorsProperties,
    FaviconProperties,
    GzipProperties,
    RequestLoggingProperties,
)

__all__ = [
    "CacheProperties",
    "CorsProperties",
    "DatabaseProperties",
    "FaviconProperties",
    "GzipProperties",
    "JWTProperties",
    "RequestLoggingProperties",
    "SessionProperties",
]
