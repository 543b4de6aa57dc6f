"""Feature flags – FlagEvaluator.

Resolves a flag's value for a context through a fixed pipeline; the first
stage that applies decides the result:

1. lookup      – unknown flag -> ``error``
2. override    – active override -> ``override``
3. dependencies – first unsatisfied dependency -> ``dependency``
4. targeting   – segments / attribute rules not matched -> ``targeting``
5. rollout     – context outside the percentage bucket -> ``rollout``
6. variants    – weighted variant pick -> ``variant``
7. default     – ``flag.value`` when enabled, else the type default

The evaluator owns no state; flags, overrides and segments are read through
the lookups passed at construction.
"""
from __future__ import annotations

import dataclasses
import random
from typing import Any, Callable, Mapping, Sequence

from flagcore.application.feature_flags.defaults import type_default
from flagcore.application.feature_flags.hashing import rollout_bucket, variant_bucket
from flagcore.application.feature_flags.models import (
    DependencyCondition,
    EvaluationContext,
    EvaluationReason,
    FeatureFlag,
    FlagEvaluation,
    FlagOverride,
    FlagVariant,
    Rollout,
    Stickiness,
    Targeting,
    UserSegment,
)
from flagcore.application.feature_flags.rules import matches_rule, matches_segment, strict_equals
from flagcore.kernel.errors import CircularDependencyError, InvariantViolationError
from flagcore.kernel.time import Clock, SystemClock
from flagcore.observability.logging import get_logger

logger = get_logger(__name__)

FlagLookup = Callable[[str], FeatureFlag | None]
OverrideLookup = Callable[[str], FlagOverride | None]
SegmentLookup = Callable[[], Sequence[UserSegment]]


@dataclasses.dataclass(frozen=True)
class DependencyCheck:
    satisfied: bool
    failed_dependency: str | None = None


@dataclasses.dataclass(frozen=True)
class RolloutDecision:
    included: bool
    hash: int | None = None
    bucket: int | None = None


def select_variant(flag: FeatureFlag, context: EvaluationContext) -> tuple[FlagVariant, int]:
    """Pick a variant by cumulative weight; returns ``(variant, bucket)``.

    Falls back to the first variant when the weights sum to less than the
    bucket. Raises :class:`InvariantViolationError` for a flag without
    variants.
    """
    if not flag.variants:
        raise InvariantViolationError(
            f"Flag '{flag.id}' has no variants to select from",
            detail={"flag_id": flag.id},
        )
    stickiness_value = context.user_id or context.session_id or "anonymous"
    bucket = variant_bucket(flag.id, stickiness_value)
    cumulative = 0.0
    for variant in flag.variants:
        cumulative += variant.weight
        if bucket < cumulative:
            return variant, bucket
    return flag.variants[0], bucket


class FlagEvaluator:
    """Evaluate flags against a context.

    Parameters
    ----------
    get_flag:
        Returns the definition for an id, or ``None``.
    get_override:
        Returns the stored override for a flag id, or ``None``. Expired
        overrides are filtered here, against *clock*.
    get_user_segments:
        Returns every known segment; called once per segment check.
    clock:
        Time source for override expiry (defaults to :class:`SystemClock`).
    """

    def __init__(
        self,
        get_flag: FlagLookup,
        get_override: OverrideLookup | None = None,
        get_user_segments: SegmentLookup | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._get_flag = get_flag
        self._get_override = get_override
        self._get_user_segments = get_user_segments
        self._clock: Clock = clock or SystemClock()

    async def evaluate(
        self,
        flag_id: str,
        context: EvaluationContext | Mapping[str, Any] | None = None,
    ) -> FlagEvaluation:
        """Resolve *flag_id* for *context*. Never raises for bad data."""
        ctx = EvaluationContext.coerce(context)
        try:
            return await self._evaluate(flag_id, ctx, ())
        except CircularDependencyError as exc:
            logger.warning("flag_evaluator.circular_dependency", flag_id=flag_id, cycle=exc.cycle)
            return FlagEvaluation(
                flag_id=flag_id,
                value=None,
                reason=EvaluationReason.ERROR,
                metadata={"error": "Circular dependency", "cycle": exc.cycle},
            )

    async def _evaluate(
        self,
        flag_id: str,
        context: EvaluationContext,
        resolving: tuple[str, ...],
    ) -> FlagEvaluation:
        if flag_id in resolving:
            raise CircularDependencyError([*resolving[resolving.index(flag_id):], flag_id])

        flag = self._get_flag(flag_id)
        if flag is None:
            return FlagEvaluation(
                flag_id=flag_id,
                value=None,
                reason=EvaluationReason.ERROR,
                metadata={"error": "Flag not found"},
            )

        override = self._active_override(flag_id)
        if override is not None:
            return FlagEvaluation(
                flag_id=flag_id,
                value=override.value,
                variant=flag.find_variant(override.variant_id) if override.variant_id else None,
                reason=EvaluationReason.OVERRIDE,
                metadata={"override": override.to_dict()},
            )

        if flag.dependencies:
            check = await self._check_dependencies(flag, context, (*resolving, flag_id))
            if not check.satisfied:
                return FlagEvaluation(
                    flag_id=flag_id,
                    value=type_default(flag),
                    reason=EvaluationReason.DEPENDENCY,
                    metadata={"failedDependency": check.failed_dependency},
                )

        if flag.targeting is not None:
            failure = self._targeting_failure(flag.targeting, context)
            if failure is not None:
                return FlagEvaluation(
                    flag_id=flag_id,
                    value=type_default(flag),
                    reason=EvaluationReason.TARGETING,
                    metadata={"targeting": failure},
                )

        if flag.rollout is not None and flag.rollout.percentage < 100:
            decision = self._rollout(flag.id, flag.rollout, context)
            if not decision.included:
                return FlagEvaluation(
                    flag_id=flag_id,
                    value=type_default(flag),
                    reason=EvaluationReason.ROLLOUT,
                    metadata={"rollout": dataclasses.asdict(decision)},
                )

        if flag.variants:
            variant, bucket = select_variant(flag, context)
            return FlagEvaluation(
                flag_id=flag_id,
                value=variant.value,
                variant=variant,
                reason=EvaluationReason.VARIANT,
                metadata={"selectedVariant": variant.id, "bucket": bucket},
            )

        return FlagEvaluation(
            flag_id=flag_id,
            value=flag.value if flag.enabled else type_default(flag),
            reason=EvaluationReason.DEFAULT,
            metadata={"enabled": flag.enabled},
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _active_override(self, flag_id: str) -> FlagOverride | None:
        if self._get_override is None:
            return None
        override = self._get_override(flag_id)
        if override is None or override.is_expired(self._clock.now()):
            return None
        return override

    async def _check_dependencies(
        self,
        flag: FeatureFlag,
        context: EvaluationContext,
        resolving: tuple[str, ...],
    ) -> DependencyCheck:
        for dependency in flag.dependencies:
            target = self._get_flag(dependency.flag_id)
            if target is None:
                return DependencyCheck(False, dependency.flag_id)

            evaluation = await self._evaluate(dependency.flag_id, context, resolving)

            # enabled/disabled look at the raw switch, not the evaluated value
            if dependency.condition is DependencyCondition.ENABLED:
                satisfied = target.enabled
            elif dependency.condition is DependencyCondition.DISABLED:
                satisfied = not target.enabled
            else:
                satisfied = strict_equals(evaluation.value, dependency.expected_value)

            if not satisfied:
                return DependencyCheck(False, dependency.flag_id)
        return DependencyCheck(True)

    def _targeting_failure(self, targeting: Targeting, context: EvaluationContext) -> str | None:
        """Return why targeting rejected *context*, or ``None`` when it matched."""
        mapping = context.as_mapping()

        if targeting.user_segments:
            allowed = targeting.user_segments
            if context.user_segment is None or context.user_segment not in allowed:
                segments = self._get_user_segments() if self._get_user_segments else ()
                if not any(s.id in allowed and matches_segment(s, mapping) for s in segments):
                    return "user segment not matched"

        if targeting.rules:
            if not any(matches_rule(rule, mapping) for rule in targeting.rules):
                return "targeting rules not matched"

        return None

    def _rollout(self, flag_id: str, rollout: Rollout, context: EvaluationContext) -> RolloutDecision:
        if rollout.stickiness is Stickiness.USER_ID:
            stickiness_value = context.user_id or "anonymous"
        elif rollout.stickiness is Stickiness.SESSION_ID:
            stickiness_value = context.session_id or "no-session"
        else:
            stickiness_value = str(random.random())

        h, bucket = rollout_bucket(flag_id, stickiness_value)
        return RolloutDecision(included=bucket <= rollout.percentage, hash=h, bucket=bucket)


__all__ = ["DependencyCheck", "FlagEvaluator", "RolloutDecision", "select_variant"]
