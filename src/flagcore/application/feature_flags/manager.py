"""Feature flags – FeatureFlagManager (flag state container).

The manager owns every mutable collection the evaluator reads: flag
definitions, overrides, audience segments, experiments and the current
evaluation context. It wires itself into a :class:`FlagEvaluator` as the
lookup source and publishes a typed event after every mutation.

Usage::

    manager = FeatureFlagManager(default_context=EvaluationContext(user_id="u1"))
    manager.add_flag(FeatureFlag(id="new-checkout", value=True, enabled=True))
    result = await manager.evaluate("new-checkout")
    assert result.reason is EvaluationReason.DEFAULT

When ``persist_overrides`` is on, overrides and the context are written to
the storage adapter after each change and restored on construction.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping

from flagcore.application.feature_flags.evaluator import FlagEvaluator
from flagcore.application.feature_flags.events import (
    ContextUpdated,
    ExperimentsUpdated,
    FlagAdded,
    FlagEvaluated,
    FlagEventBus,
    FlagEventKind,
    FlagEventListener,
    FlagRemoved,
    FlagUpdated,
    FlagsUpdated,
    OverrideRemoved,
    OverrideSet,
    OverridesCleared,
    SegmentsUpdated,
)
from flagcore.application.feature_flags.models import (
    EvaluationContext,
    Experiment,
    FeatureFlag,
    FlagEvaluation,
    FlagOverride,
    UserSegment,
)
from flagcore.application.feature_flags.validation import ensure_valid
from flagcore.application.storage import FileStorageAdapter, InMemoryStorageAdapter, StorageAdapter
from flagcore.config.settings import FlagSettings
from flagcore.kernel.time import Clock, SystemClock
from flagcore.observability.logging import JsonLoggerFactory, get_logger

logger = get_logger(__name__)

OVERRIDES_KEY = "overrides"
CONTEXT_KEY = "context"


class FeatureFlagManager:
    """Mutable flag state plus evaluation entry points.

    Parameters
    ----------
    storage:
        Where overrides and context are persisted. Defaults to an
        :class:`InMemoryStorageAdapter`.
    default_context:
        Context used when ``evaluate`` is called without one.
    persist_overrides:
        Write overrides/context to *storage* and restore them at start-up.
    clock:
        Time source for override expiry.
    """

    def __init__(
        self,
        *,
        storage: StorageAdapter | None = None,
        default_context: EvaluationContext | None = None,
        persist_overrides: bool = True,
        clock: Clock | None = None,
    ) -> None:
        self._flags: dict[str, FeatureFlag] = {}
        self._overrides: dict[str, FlagOverride] = {}
        self._segments: list[UserSegment] = []
        self._experiments: list[Experiment] = []
        self._context = default_context or EvaluationContext(environment="development")
        self._storage: StorageAdapter = storage if storage is not None else InMemoryStorageAdapter()
        self._persist_overrides = persist_overrides
        self._clock: Clock = clock or SystemClock()
        self._events = FlagEventBus()
        self._evaluator = FlagEvaluator(
            get_flag=self.get_flag,
            get_override=self.get_override,
            get_user_segments=lambda: self._segments,
            clock=self._clock,
        )
        self._load_persisted_state()

    @classmethod
    def from_settings(
        cls,
        settings: FlagSettings,
        *,
        clock: Clock | None = None,
        configure_logging: bool = False,
    ) -> FeatureFlagManager:
        """Build a manager whose storage and defaults come from *settings*.

        With *configure_logging* the process-wide JSON logging is set up at
        ``settings.log_level`` before the manager loads persisted state.
        """
        if configure_logging:
            JsonLoggerFactory.configure(level=settings.log_level_number)
        storage: StorageAdapter
        if settings.storage_path:
            storage = FileStorageAdapter(settings.storage_path, prefix=settings.storage_prefix, clock=clock)
        else:
            storage = InMemoryStorageAdapter()
        return cls(
            storage=storage,
            default_context=EvaluationContext(environment=settings.environment),
            persist_overrides=settings.persist_overrides,
            clock=clock,
        )

    @property
    def evaluator(self) -> FlagEvaluator:
        return self._evaluator

    # ------------------------------------------------------------------
    # Flags
    # ------------------------------------------------------------------

    def set_flags(self, flags: Iterable[FeatureFlag]) -> None:
        """Replace every definition with *flags*."""
        flags = tuple(flags)
        self._flags = {flag.id: flag for flag in flags}
        self._events.publish(FlagsUpdated(flags=flags))

    def add_flag(self, flag: FeatureFlag, *, validate: bool = False) -> None:
        if validate:
            ensure_valid(flag)
        self._flags[flag.id] = flag
        self._events.publish(FlagAdded(flag=flag))

    def update_flag(self, flag: FeatureFlag, *, validate: bool = False) -> None:
        """Replace the whole record stored under ``flag.id`` (no field merge)."""
        if validate:
            ensure_valid(flag)
        self._flags[flag.id] = flag
        self._events.publish(FlagUpdated(flag=flag))

    def remove_flag(self, flag_id: str) -> None:
        flag = self._flags.pop(flag_id, None)
        if flag is not None:
            self._events.publish(FlagRemoved(flag=flag))

    def get_flag(self, flag_id: str) -> FeatureFlag | None:
        return self._flags.get(flag_id)

    def get_all_flags(self) -> list[FeatureFlag]:
        return list(self._flags.values())

    # ------------------------------------------------------------------
    # Overrides
    # ------------------------------------------------------------------

    def set_override(self, override: FlagOverride) -> None:
        """Store *override*, replacing any existing one for the same flag."""
        self._overrides[override.flag_id] = override
        self._persist_state()
        self._events.publish(OverrideSet(override=override))

    def remove_override(self, flag_id: str) -> None:
        override = self._overrides.pop(flag_id, None)
        if override is not None:
            self._persist_state()
            self._events.publish(OverrideRemoved(override=override))

    def clear_all_overrides(self) -> None:
        flag_ids = tuple(self._overrides)
        self._overrides.clear()
        self._persist_state()
        self._events.publish(OverridesCleared(flag_ids=flag_ids))

    def get_override(self, flag_id: str) -> FlagOverride | None:
        """Stored override for *flag_id*, expired or not."""
        return self._overrides.get(flag_id)

    def get_all_overrides(self) -> list[FlagOverride]:
        return list(self._overrides.values())

    def get_active_overrides(self) -> list[FlagOverride]:
        now = self._clock.now()
        return [o for o in self._overrides.values() if not o.is_expired(now)]

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def set_context(self, changes: Mapping[str, Any] | None = None, /, **fields: Any) -> None:
        """Shallow-merge *changes* into the current context.

        ``attributes`` is replaced as a whole, never merged key by key.
        """
        self._context = self._context.merged(**{**(changes or {}), **fields})
        self._persist_state()
        self._events.publish(ContextUpdated(context=self._context))

    def get_context(self) -> EvaluationContext:
        return self._context

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    async def evaluate(
        self,
        flag_id: str,
        context: EvaluationContext | Mapping[str, Any] | None = None,
    ) -> FlagEvaluation:
        """Evaluate *flag_id* against *context* (or the current context)."""
        ctx = EvaluationContext.coerce(context) if context is not None else self._context
        evaluation = await self._evaluator.evaluate(flag_id, ctx)
        self._events.publish(FlagEvaluated(flag_id=flag_id, evaluation=evaluation, context=ctx))
        return evaluation

    async def evaluate_all(
        self,
        context: EvaluationContext | Mapping[str, Any] | None = None,
    ) -> dict[str, FlagEvaluation]:
        """Evaluate every flag one after another, in registration order."""
        ctx = EvaluationContext.coerce(context) if context is not None else self._context
        results: dict[str, FlagEvaluation] = {}
        for flag_id in list(self._flags):
            results[flag_id] = await self.evaluate(flag_id, ctx)
        return results

    # ------------------------------------------------------------------
    # Segments & experiments
    # ------------------------------------------------------------------

    def set_user_segments(self, segments: Iterable[UserSegment]) -> None:
        self._segments = list(segments)
        self._events.publish(SegmentsUpdated(segments=tuple(self._segments)))

    def get_user_segments(self) -> list[UserSegment]:
        return list(self._segments)

    def set_experiments(self, experiments: Iterable[Experiment]) -> None:
        self._experiments = list(experiments)
        self._events.publish(ExperimentsUpdated(experiments=tuple(self._experiments)))

    def get_experiments(self) -> list[Experiment]:
        return list(self._experiments)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, kind: FlagEventKind, listener: FlagEventListener) -> None:
        self._events.subscribe(kind, listener)

    def unsubscribe(self, kind: FlagEventKind, listener: FlagEventListener) -> None:
        self._events.unsubscribe(kind, listener)

    def close(self) -> None:
        """Drop every listener."""
        self._events.clear()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load_persisted_state(self) -> None:
        if not self._persist_overrides:
            return
        try:
            stored_overrides = self._storage.get_item(OVERRIDES_KEY)
            if stored_overrides:
                now = self._clock.now()
                for raw in stored_overrides:
                    override = FlagOverride.from_dict(raw)
                    if not override.is_expired(now):
                        self._overrides[override.flag_id] = override

            stored_context = self._storage.get_item(CONTEXT_KEY)
            if stored_context:
                # unset fields were stored as null; they must not blank the defaults
                self._context = self._context.merged(
                    **{k: v for k, v in stored_context.items() if v is not None}
                )
        except Exception as exc:  # noqa: BLE001
            logger.warning("flag_manager.load_failed", error=str(exc))
            return
        logger.debug("flag_manager.state_loaded", overrides=len(self._overrides))

    def _persist_state(self) -> None:
        if not self._persist_overrides:
            return
        try:
            self._storage.set_item(OVERRIDES_KEY, [o.to_dict() for o in self._overrides.values()])
            self._storage.set_item(CONTEXT_KEY, self._context.to_dict())
        except Exception as exc:  # noqa: BLE001
            logger.warning("flag_manager.persist_failed", error=str(exc))


__all__ = ["CONTEXT_KEY", "FeatureFlagManager", "OVERRIDES_KEY"]
