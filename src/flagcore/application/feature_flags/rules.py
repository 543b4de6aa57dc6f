"""Feature flags – attribute rule operators and segment matching."""
from __future__ import annotations

from typing import Any, Mapping, Sequence

from flagcore.application.feature_flags.models import (
    RuleOperator,
    SegmentRule,
    TargetingRule,
    UserSegment,
)
from flagcore.application.feature_flags.paths import get_path


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """Equality that never lets ``True`` stand in for ``1`` (or ``"1"`` for ``1``)."""
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right


def _includes(values: Sequence[Any], candidate: Any) -> bool:
    return any(strict_equals(v, candidate) for v in values)


def evaluate_condition(actual: Any, operator: RuleOperator, values: Sequence[Any]) -> bool:
    """Apply *operator* to a context value and the rule's value list."""
    if operator is RuleOperator.EQUALS:
        return _includes(values, actual)
    if operator is RuleOperator.NOT_EQUALS:
        return not _includes(values, actual)
    if operator is RuleOperator.IN:
        if isinstance(actual, (list, tuple)):
            return any(_includes(values, item) for item in actual)
        return _includes(values, actual)
    if operator is RuleOperator.NOT_IN:
        if isinstance(actual, (list, tuple)):
            return not any(_includes(values, item) for item in actual)
        return not _includes(values, actual)
    if operator is RuleOperator.GREATER_THAN:
        return _is_number(actual) and any(_is_number(v) and actual > v for v in values)
    if operator is RuleOperator.LESS_THAN:
        return _is_number(actual) and any(_is_number(v) and actual < v for v in values)
    if operator is RuleOperator.CONTAINS:
        return isinstance(actual, str) and any(isinstance(v, str) and v in actual for v in values)
    return False


def matches_rule(rule: SegmentRule, context: Mapping[str, Any]) -> bool:
    """Match one rule against a context mapping (absent attribute -> ``None``)."""
    if isinstance(rule, TargetingRule) and not rule.enabled:
        return False
    actual = get_path(context, rule.attribute).unwrap_or(None)
    return evaluate_condition(actual, rule.operator, rule.values)


def matches_segment(segment: UserSegment, context: Mapping[str, Any]) -> bool:
    """All rules must match; a segment without rules matches everyone."""
    return all(matches_rule(rule, context) for rule in segment.rules)


__all__ = [
    "evaluate_condition",
    "matches_rule",
    "matches_segment",
    "strict_equals",
]
