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
"""Security configuration properties."""

from __future__ import annotations

from dataclasses import dataclass, field

from flyware.core.config import config_properties


@config_properties(prefix="flyware.security.jwt")
@dataclass
class JWTProperties:
    """Configuration for JWT authentication (flyware.security.jwt.*)."""

    enabled: bool = False
    secret: str = ""
    algorithm: str = "HS256"
    realm: str = "flyware"
    timeout: int = 3600
    max_refresh: int = 0
    token_lookup: str = "header:Authorization"
    payload_key: str = "jwt_payload"
    exclude_patterns: list[str] = field(default_factory=list)
