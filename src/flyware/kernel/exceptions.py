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
"""Exception hierarchy for flyware.

Setup problems surface as :class:`ConfigurationException` while the
application is being assembled.  Per-request outcomes (a denied origin, a
missing token) are plain HTTP responses and never escape the filter chain.
"""

from __future__ import annotations

# =============================================================================
# Base Exception
# =============================================================================


class FlywareException(Exception):
    """Base exception for all flyware errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CORS_WILDCARD_MIXED").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(FlywareException):
    """Invalid setup detected while building a filter or loading configuration.

    Fatal: the application must not start serving with an invalid setup.
    """


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(FlywareException):
    """Authentication and authorization errors."""


class UnauthorizedException(SecurityException):
    """Authentication is required but was not provided or is invalid."""


class ForbiddenException(SecurityException):
    """Authenticated caller lacks permission to perform the operation."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(FlywareException):
    """Infrastructure failures: cache, session store, database."""


class CacheException(InfrastructureException):
    """A cache backend rejected or failed an operation."""


class SessionException(InfrastructureException):
    """A session could not be loaded or persisted."""
