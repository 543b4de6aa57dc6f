"""Feature flags – change notifications.

Every mutation of :class:`FeatureFlagManager` publishes one event. Each kind
has its own payload class, so listeners receive typed data instead of an
untyped blob::

    def on_override(event: OverrideSet) -> None:
        print(event.override.flag_id)

    manager.subscribe(FlagEventKind.OVERRIDE_SET, on_override)

A listener that raises is logged and skipped; the mutating call that
triggered the event still succeeds.
"""
from __future__ import annotations

import dataclasses
from enum import Enum
from typing import ClassVar, Protocol

from flagcore.application.feature_flags.models import (
    EvaluationContext,
    Experiment,
    FeatureFlag,
    FlagEvaluation,
    FlagOverride,
    UserSegment,
)
from flagcore.observability.logging import get_logger

logger = get_logger(__name__)


class FlagEventKind(str, Enum):
    FLAGS_UPDATED = "flags-updated"
    FLAG_ADDED = "flag-added"
    FLAG_UPDATED = "flag-updated"
    FLAG_REMOVED = "flag-removed"
    OVERRIDE_SET = "override-set"
    OVERRIDE_REMOVED = "override-removed"
    OVERRIDES_CLEARED = "overrides-cleared"
    CONTEXT_UPDATED = "context-updated"
    FLAG_EVALUATED = "flag-evaluated"
    SEGMENTS_UPDATED = "segments-updated"
    EXPERIMENTS_UPDATED = "experiments-updated"


@dataclasses.dataclass(frozen=True)
class FlagEvent:
    kind: ClassVar[FlagEventKind]


@dataclasses.dataclass(frozen=True)
class FlagsUpdated(FlagEvent):
    kind: ClassVar[FlagEventKind] = FlagEventKind.FLAGS_UPDATED
    flags: tuple[FeatureFlag, ...]


@dataclasses.dataclass(frozen=True)
class FlagAdded(FlagEvent):
    kind: ClassVar[FlagEventKind] = FlagEventKind.FLAG_ADDED
    flag: FeatureFlag


@dataclasses.dataclass(frozen=True)
class FlagUpdated(FlagEvent):
    kind: ClassVar[FlagEventKind] = FlagEventKind.FLAG_UPDATED
    flag: FeatureFlag


@dataclasses.dataclass(frozen=True)
class FlagRemoved(FlagEvent):
    kind: ClassVar[FlagEventKind] = FlagEventKind.FLAG_REMOVED
    flag: FeatureFlag


@dataclasses.dataclass(frozen=True)
class OverrideSet(FlagEvent):
    kind: ClassVar[FlagEventKind] = FlagEventKind.OVERRIDE_SET
    override: FlagOverride


@dataclasses.dataclass(frozen=True)
class OverrideRemoved(FlagEvent):
    kind: ClassVar[FlagEventKind] = FlagEventKind.OVERRIDE_REMOVED
    override: FlagOverride


@dataclasses.dataclass(frozen=True)
class OverridesCleared(FlagEvent):
    kind: ClassVar[FlagEventKind] = FlagEventKind.OVERRIDES_CLEARED
    flag_ids: tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class ContextUpdated(FlagEvent):
    kind: ClassVar[FlagEventKind] = FlagEventKind.CONTEXT_UPDATED
    context: EvaluationContext


@dataclasses.dataclass(frozen=True)
class FlagEvaluated(FlagEvent):
    kind: ClassVar[FlagEventKind] = FlagEventKind.FLAG_EVALUATED
    flag_id: str
    evaluation: FlagEvaluation
    context: EvaluationContext


@dataclasses.dataclass(frozen=True)
class SegmentsUpdated(FlagEvent):
    kind: ClassVar[FlagEventKind] = FlagEventKind.SEGMENTS_UPDATED
    segments: tuple[UserSegment, ...]


@dataclasses.dataclass(frozen=True)
class ExperimentsUpdated(FlagEvent):
    kind: ClassVar[FlagEventKind] = FlagEventKind.EXPERIMENTS_UPDATED
    experiments: tuple[Experiment, ...]


class FlagEventListener(Protocol):
    def __call__(self, event: FlagEvent) -> None: ...


class FlagEventBus:
    """In-process dispatcher keyed by :class:`FlagEventKind`.

    Listeners run synchronously in subscription order. Subscribing the same
    listener twice for one kind has no effect.
    """

    def __init__(self) -> None:
        self._listeners: dict[FlagEventKind, list[FlagEventListener]] = {}

    def subscribe(self, kind: FlagEventKind, listener: FlagEventListener) -> None:
        listeners = self._listeners.setdefault(FlagEventKind(kind), [])
        if listener not in listeners:
            listeners.append(listener)

    def unsubscribe(self, kind: FlagEventKind, listener: FlagEventListener) -> None:
        listeners = self._listeners.get(FlagEventKind(kind), [])
        if listener in listeners:
            listeners.remove(listener)

    def publish(self, event: FlagEvent) -> None:
        for listener in list(self._listeners.get(event.kind, ())):
            try:
                listener(event)
            except Exception:  # noqa: BLE001
                logger.exception("flag_events.listener_failed", kind=event.kind.value)

    def listener_count(self, kind: FlagEventKind | None = None) -> int:
        if kind is not None:
            return len(self._listeners.get(FlagEventKind(kind), ()))
        return sum(len(v) for v in self._listeners.values())

    def clear(self) -> None:
        self._listeners.clear()


__all__ = [
    "ContextUpdated",
    "ExperimentsUpdated",
    "FlagAdded",
    "FlagEvaluated",
    "FlagEvent",
    "FlagEventBus",
    "FlagEventKind",
    "FlagEventListener",
    "FlagRemoved",
    "FlagUpdated",
    "FlagsUpdated",
    "OverrideRemoved",
    "OverrideSet",
    "OverridesCleared",
    "SegmentsUpdated",
]
