"""Application storage – InMemoryStorageAdapter."""
from __future__ import annotations

import copy
from typing import Any

__all__ = ["InMemoryStorageAdapter"]


class InMemoryStorageAdapter:
    """Dict-backed :class:`StorageAdapter`.

    Values are deep-copied on the way in and out so callers can never
    mutate stored state through a returned reference.
    """

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get_item(self, key: str) -> Any:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def set_item(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def get_all_keys(self) -> list[str]:
        return list(self._data)
