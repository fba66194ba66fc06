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
"""HttpSession: server-side session wrapper."""

from __future__ import annotations

import time
from typing import Any

FLASHES_KEY = "_flash"


class HttpSession:
    """Wraps a session data dictionary with convenience accessors.

    Keys starting with ``_`` hold bookkeeping data (timestamps, flashes) and
    are hidden from :meth:`get_attribute_names`.
    """

    def __init__(
        self,
        session_id: str,
        data: dict[str, Any] | None = None,
        *,
        is_new: bool = False,
    ) -> None:
        self._id = session_id
        self._data: dict[str, Any] = data if data is not None else {}
        self._is_new = is_new
        self._invalidated = False
        self._modified = is_new

        now = time.time()
        if "_created_at" not in self._data:
            self._data["_created_at"] = now
        self._data["_last_accessed"] = now

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_new(self) -> bool:
        return self._is_new

    @property
    def created_at(self) -> float:
        return float(self._data["_created_at"])

    @property
    def invalidated(self) -> bool:
        return self._invalidated

    @property
    def modified(self) -> bool:
        return self._modified

    def get_attribute(self, name: str, default: Any = None) -> Any:
        """Return the session attribute value, or *default* if absent."""
        return self._data.get(name, default)

    def set_attribute(self, name: str, value: Any) -> None:
        self._data[name] = value
        self._modified = True

    def remove_attribute(self, name: str) -> None:
        """Remove a session attribute if it exists."""
        if name in self._data:
            del self._data[name]
            self._modified = True

    def get_attribute_names(self) -> list[str]:
        """Return all attribute names, excluding internal keys."""
        return [k for k in self._data if not k.startswith("_")]

    def clear(self) -> None:
        """Drop every attribute and flash, keeping the session itself alive."""
        created_at = self._data["_created_at"]
        self._data.clear()
        self._data["_created_at"] = created_at
        self._data["_last_accessed"] = time.time()
        self._modified = True

    def add_flash(self, value: Any, key: str = FLASHES_KEY) -> None:
        """Queue a one-shot message under *key*."""
        flashes = list(self._data.get(key, []))
        flashes.append(value)
        self._data[key] = flashes
        self._modified = True

    def get_flashes(self, key: str = FLASHES_KEY) -> list[Any]:
        """Return and remove the messages queued under *key*."""
        if key not in self._data:
            return []
        self._modified = True
        return list(self._data.pop(key))

    def invalidate(self) -> None:
        """Mark the session for deletion."""
        self._invalidated = True
        self._modified = True

    def get_data(self) -> dict[str, Any]:
        """Return the raw session data dictionary."""
        return self._data
