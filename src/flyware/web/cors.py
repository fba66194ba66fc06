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
"""CORS policy for flyware web applications.

A :class:`CorsPolicy` is built once from a :class:`CORSConfig`, validated,
and then shared read-only by every request.  The header sets sent on normal
and preflight responses are computed at construction time; only the echoed
``Access-Control-Allow-Origin`` value depends on the request.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from flyware.kernel.exceptions import ConfigurationException

if TYPE_CHECKING:
    from flyware.config.properties.web import CorsProperties

OriginPredicate = Callable[[str], bool]

# Ordered header multimap: a name may appear several times.
HeaderPairs = tuple[tuple[str, str], ...]

ALLOW_ALL = "*"

ALLOW_ORIGIN = "Access-Control-Allow-Origin"
ALLOW_CREDENTIALS = "Access-Control-Allow-Credentials"
ALLOW_METHODS = "Access-Control-Allow-Methods"
ALLOW_HEADERS = "Access-Control-Allow-Headers"
EXPOSE_HEADERS = "Access-Control-Expose-Headers"
MAX_AGE = "Access-Control-Max-Age"
VARY = "Vary"

_ALLOWED_SCHEMES = ("http://", "https://")

_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def normalize_values(values: Iterable[str] | None) -> list[str]:
    """Trim and lowercase *values*, dropping duplicates but keeping first-seen order."""
    if not values:
        return []
    return list(dict.fromkeys(v.strip().lower() for v in values))


def canonical_header_key(name: str) -> str:
    """Return the canonical form of a header name.

    Each ``-``-separated segment gets an uppercase first letter and lowercase
    rest (``x-user`` -> ``X-User``, ``xPassword`` -> ``Xpassword``).  Names
    containing characters outside the HTTP token set are returned unchanged.
    """
    if not _TOKEN_RE.match(name):
        return name
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


@dataclass(frozen=True)
class CORSConfig:
    """User-facing CORS settings.

    ``allow_origins`` of ``["*"]`` allows every origin.  An empty list is only
    valid together with ``allow_origin_predicate``, which is consulted for any
    origin not found in the list.
    """

    allow_origins: list[str] = field(default_factory=lambda: [ALLOW_ALL])
    allow_origin_predicate: OriginPredicate | None = None
    allow_methods: list[str] = field(default_factory=lambda: ["GET", "POST", "HEAD"])
    allow_headers: list[str] = field(default_factory=lambda: ["Origin", "Accept", "Content-Type"])
    expose_headers: list[str] = field(default_factory=list)
    allow_credentials: bool = False
    max_age: int | timedelta = 0  # seconds; 0 omits Access-Control-Max-Age


class CorsPolicy:
    """Validated, immutable CORS policy.

    Raises:
        ConfigurationException: If the origin configuration is invalid or
            ``max_age`` is negative.
    """

    __slots__ = (
        "_allow_origins",
        "_predicate",
        "_allow_all_origins",
        "_allow_methods",
        "_allow_headers",
        "_expose_headers",
        "_allow_credentials",
        "_max_age",
        "_normal_headers",
        "_preflight_headers",
    )

    def __init__(self, config: CORSConfig | None = None) -> None:
        config = config or CORSConfig()

        self._allow_origins = tuple(normalize_values(config.allow_origins))
        self._predicate = config.allow_origin_predicate
        self._allow_all_origins = _validate_origins(self._allow_origins, self._predicate)

        self._allow_methods = tuple(v.upper() for v in normalize_values(config.allow_methods))
        self._allow_headers = tuple(canonical_header_key(v) for v in normalize_values(config.allow_headers))
        self._expose_headers = tuple(canonical_header_key(v) for v in normalize_values(config.expose_headers))
        self._allow_credentials = bool(config.allow_credentials)
        self._max_age = _to_seconds(config.max_age)

        self._normal_headers = build_normal_headers(self)
        self._preflight_headers = build_preflight_headers(self)

    @classmethod
    def from_properties(
        cls,
        props: CorsProperties,
        allow_origin_predicate: OriginPredicate | None = None,
    ) -> CorsPolicy:
        """Build a policy from bound ``flyware.web.cors`` properties."""
        return cls(
            CORSConfig(
                allow_origins=list(props.allow_origins),
                allow_origin_predicate=allow_origin_predicate,
                allow_methods=list(props.allow_methods),
                allow_headers=list(props.allow_headers),
                expose_headers=list(props.expose_headers),
                allow_credentials=props.allow_credentials,
                max_age=props.max_age,
            )
        )

    def __setattr__(self, name: str, value: object) -> None:
        if hasattr(self, "_preflight_headers"):
            raise AttributeError(f"{type(self).__name__} is immutable")
        object.__setattr__(self, name, value)

    @property
    def allow_origins(self) -> tuple[str, ...]:
        return self._allow_origins

    @property
    def allow_origin_predicate(self) -> OriginPredicate | None:
        return self._predicate

    @property
    def allow_all_origins(self) -> bool:
        return self._allow_all_origins

    @property
    def allow_methods(self) -> tuple[str, ...]:
        return self._allow_methods

    @property
    def allow_headers(self) -> tuple[str, ...]:
        return self._allow_headers

    @property
    def expose_headers(self) -> tuple[str, ...]:
        return self._expose_headers

    @property
    def allow_credentials(self) -> bool:
        return self._allow_credentials

    @property
    def max_age(self) -> int:
        return self._max_age

    @property
    def normal_headers(self) -> HeaderPairs:
        """Headers added to allowed non-preflight responses."""
        return self._normal_headers

    @property
    def preflight_headers(self) -> HeaderPairs:
        """Headers sent on allowed preflight responses."""
        return self._preflight_headers

    def is_origin_allowed(self, origin: str) -> bool:
        """Decide whether *origin* may access the resource.

        The configured list is matched exactly (case-sensitive) against the
        normalized entries; the predicate, if any, receives the raw origin.
        Exceptions raised by the predicate propagate to the caller.
        """
        if self._allow_all_origins:
            return True
        if origin in self._allow_origins:
            return True
        if self._predicate is not None:
            return bool(self._predicate(origin))
        return False

    def echo_origin(self) -> bool:
        """Whether responses must echo the request origin in ``Access-Control-Allow-Origin``."""
        # Also with credentials: a specific-origin policy has no wildcard to fall back on.
        return not self._allow_all_origins


def build_normal_headers(policy: CorsPolicy) -> HeaderPairs:
    """Build the header set for allowed non-preflight responses."""
    headers: list[tuple[str, str]] = []
    if policy.allow_credentials:
        headers.append((ALLOW_CREDENTIALS, "true"))
    exposed = [h for h in policy.expose_headers if h]
    if exposed:
        headers.append((EXPOSE_HEADERS, ",".join(exposed)))
    if policy.allow_all_origins:
        headers.append((ALLOW_ORIGIN, ALLOW_ALL))
    else:
        headers.append((VARY, "Origin"))
    return tuple(headers)


def build_preflight_headers(policy: CorsPolicy) -> HeaderPairs:
    """Build the header set for allowed preflight (``OPTIONS``) responses."""
    headers: list[tuple[str, str]] = []
    if policy.allow_credentials:
        headers.append((ALLOW_CREDENTIALS, "true"))
    methods = [m for m in policy.allow_methods if m]
    if methods:
        headers.append((ALLOW_METHODS, ",".join(methods)))
    allowed = [h for h in policy.allow_headers if h]
    if allowed:
        headers.append((ALLOW_HEADERS, ",".join(allowed)))
    if policy.max_age > 0:
        headers.append((MAX_AGE, str(policy.max_age)))
    if policy.allow_all_origins:
        headers.append((ALLOW_ORIGIN, ALLOW_ALL))
    else:
        # Separate occurrences, not one comma-joined value.
        headers.append((VARY, "Origin"))
        headers.append((VARY, "Access-Control-Request-Method"))
        headers.append((VARY, "Access-Control-Request-Headers"))
    return tuple(headers)


def _validate_origins(origins: tuple[str, ...], predicate: OriginPredicate | None) -> bool:
    """Check the normalized origin list; return ``True`` when all origins are allowed."""
    if origins == (ALLOW_ALL,):
        if predicate is not None:
            raise ConfigurationException(
                "allow_origin_predicate cannot be combined with allow_origins=['*']",
                code="CORS_WILDCARD_WITH_PREDICATE",
            )
        return True

    if origins:
        if ALLOW_ALL in origins:
            raise ConfigurationException(
                "'*' cannot be mixed with specific origins in allow_origins",
                code="CORS_WILDCARD_MIXED",
                context={"allow_origins": list(origins)},
            )
        for origin in origins:
            if not origin.startswith(_ALLOWED_SCHEMES):
                raise ConfigurationException(
                    f"Origin '{origin}' must start with 'http://' or 'https://'",
                    code="CORS_INVALID_ORIGIN",
                    context={"origin": origin},
                )
        return False

    if predicate is None:
        raise ConfigurationException(
            "No origin allowed: set allow_origins or allow_origin_predicate",
            code="CORS_NO_ORIGIN",
        )
    return False


def _to_seconds(max_age: int | timedelta) -> int:
    seconds = int(max_age.total_seconds()) if isinstance(max_age, timedelta) else int(max_age)
    if seconds < 0:
        raise ConfigurationException(
            f"max_age must not be negative, got {seconds}",
            code="CORS_INVALID_MAX_AGE",
        )
    return seconds
