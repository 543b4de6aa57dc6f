"""Feature flags – dot-path lookup into JSON-like values."""
from __future__ import annotations

from typing import Any, Mapping

from flagcore.kernel.types import Nothing, Option, Some


def get_path(value: Any, path: str) -> Option[Any]:
    """Resolve ``"a.b.c"`` through nested mappings.

    Returns :class:`Nothing` as soon as a segment is missing or the value
    being traversed is not a mapping; a stored ``None`` comes back as
    ``Some(None)``.
    """
    current = value
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return Nothing()
        current = current[part]
    return Some(current)


__all__ = ["get_path"]
