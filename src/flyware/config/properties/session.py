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
"""Session subsystem configuration properties."""

from __future__ import annotations

from dataclasses import dataclass, field

from flyware.core.config import config_properties


@config_properties(prefix="flyware.session")
@dataclass
class SessionProperties:
    """Configuration for the session subsystem (flyware.session.*).

    ``store`` is one of ``memory``, ``redis`` or ``cookie``.  The cookie store
    keeps the whole session in a signed cookie and needs ``secret-keys``.
    """

    enabled: bool = False
    store: str = "memory"
    cookie_name: str = "FLYWARE_SESSION"
    ttl: int = 86400 * 30
    secure: bool = False
    http_only: bool = True
    same_site: str = "lax"
    secret_keys: list[str] = field(default_factory=list)
    redis: dict = field(default_factory=lambda: {"url": "redis://localhost:6379/0"})
    max_length: int = 4096
