"""Feature flags – FeatureFlagProvider port and its manager-backed adapter.

Application code that only needs "is this on?" depends on the port, so a
test can swap in :class:`flagcore.testing.fakes.FakeFeatureFlagProvider`.
"""
from __future__ import annotations

import abc
from typing import Any, Mapping

from flagcore.application.feature_flags.manager import FeatureFlagManager
from flagcore.application.feature_flags.models import EvaluationContext, EvaluationReason

ContextLike = EvaluationContext | Mapping[str, Any] | None


class FeatureFlagProvider(abc.ABC):
    """Port: answer flag questions for a given context."""

    @abc.abstractmethod
    async def is_enabled(self, flag_id: str, context: ContextLike = None) -> bool: ...

    @abc.abstractmethod
    async def get_variant(self, flag_id: str, context: ContextLike = None) -> str | None: ...


class ManagerFeatureFlagProvider(FeatureFlagProvider):
    """:class:`FeatureFlagProvider` answering through a :class:`FeatureFlagManager`."""

    def __init__(self, manager: FeatureFlagManager) -> None:
        self._manager = manager

    async def is_enabled(self, flag_id: str, context: ContextLike = None) -> bool:
        """True when evaluation succeeded and produced a truthy value."""
        evaluation = await self._manager.evaluate(flag_id, context)
        if evaluation.reason is EvaluationReason.ERROR:
            return False
        return bool(evaluation.value)

    async def get_variant(self, flag_id: str, context: ContextLike = None) -> str | None:
        evaluation = await self._manager.evaluate(flag_id, context)
        return evaluation.variant.id if evaluation.variant is not None else None


__all__ = ["ContextLike", "FeatureFlagProvider", "ManagerFeatureFlagProvider"]
