"""Application storage – StorageAdapter port."""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

__all__ = ["StorageAdapter"]


@runtime_checkable
class StorageAdapter(Protocol):
    """Key/value persistence used by the flag manager.

    ``get_item`` returns ``None`` only for keys that were never stored (or
    were removed). Stored falsy values such as ``False``, ``0`` and ``""``
    must come back unchanged.
    """

    def get_item(self, key: str) -> Any: ...
    def set_item(self, key: str, value: Any) -> None: ...
    def remove_item(self, key: str) -> None: ...
    def clear(self) -> None: ...
    def get_all_keys(self) -> list[str]: ...
