"""Feature flags – definitions, overrides, context and evaluation results.

Definitions are frozen dataclasses: the manager replaces whole records and
the evaluator only ever reads them. ``from_dict`` accepts the camelCase
layout used by JSON flag files as well as snake_case keys.
"""
from __future__ import annotations

import dataclasses
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Mapping

FlagValue = Any


class FlagType(str, Enum):
    """Closed set of flag value types."""

    BOOLEAN = "boolean"
    STRING = "string"
    NUMBER = "number"
    JSON = "json"
    MULTIVARIATE = "multivariate"


class DependencyCondition(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    EQUALS = "equals"


class RuleOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    IN = "in"
    NOT_IN = "not_in"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"


class Stickiness(str, Enum):
    """Context field hashed to keep rollout assignment stable."""

    USER_ID = "userId"
    SESSION_ID = "sessionId"
    RANDOM = "random"


class EvaluationReason(str, Enum):
    """Pipeline stage that produced an evaluation's value."""

    DEFAULT = "default"
    OVERRIDE = "override"
    TARGETING = "targeting"
    ROLLOUT = "rollout"
    DEPENDENCY = "dependency"
    VARIANT = "variant"
    ERROR = "error"


class ExperimentStatus(str, Enum):
    DRAFT = "draft"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


def _first(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def _parse_datetime(raw: Any) -> datetime | None:
    """Parse an ISO string or pass a datetime through; naive values are read as UTC."""
    if raw is None:
        return None
    value = raw if isinstance(raw, datetime) else datetime.fromisoformat(str(raw))
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


# ---------------------------------------------------------------------------
# Flag definition parts
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class FlagVariant:
    """One weighted alternative value of a multivariate flag."""

    id: str
    value: FlagValue
    weight: float = 0
    name: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FlagVariant:
        return cls(
            id=data["id"],
            value=data.get("value"),
            weight=data.get("weight") or 0,
            name=data.get("name", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "value": self.value, "weight": self.weight}


@dataclasses.dataclass(frozen=True)
class FlagDependency:
    """Requirement that another flag be enabled, disabled or hold a value."""

    flag_id: str
    condition: DependencyCondition = DependencyCondition.ENABLED
    expected_value: FlagValue = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "condition", DependencyCondition(self.condition))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FlagDependency:
        return cls(
            flag_id=_first(data, "targetFlagId", "flagId", "flag_id"),
            condition=DependencyCondition(data.get("condition", "enabled")),
            expected_value=_first(data, "expectedValue", "expected_value", "value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "flagId": self.flag_id,
            "condition": self.condition.value,
            "expectedValue": self.expected_value,
        }


@dataclasses.dataclass(frozen=True)
class SegmentRule:
    """Attribute condition inside a user segment."""

    attribute: str
    operator: RuleOperator
    values: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "operator", RuleOperator(self.operator))
        object.__setattr__(self, "values", tuple(self.values))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SegmentRule:
        return cls(
            attribute=data["attribute"],
            operator=RuleOperator(data["operator"]),
            values=tuple(data.get("values", ())),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "attribute": self.attribute,
            "operator": self.operator.value,
            "values": list(self.values),
        }


@dataclasses.dataclass(frozen=True)
class TargetingRule(SegmentRule):
    """Attribute condition attached to a flag; disabled rules never match."""

    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TargetingRule:
        return cls(
            attribute=data["attribute"],
            operator=RuleOperator(data["operator"]),
            values=tuple(data.get("values", ())),
            enabled=data.get("enabled", True),
        )

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "enabled": self.enabled}


@dataclasses.dataclass(frozen=True)
class UserSegment:
    """Named audience; a context belongs to it when every rule matches."""

    id: str
    rules: tuple[SegmentRule, ...] = ()
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", tuple(self.rules))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UserSegment:
        return cls(
            id=data["id"],
            rules=tuple(SegmentRule.from_dict(r) for r in data.get("rules", ())),
            name=data.get("name", ""),
        )


@dataclasses.dataclass(frozen=True)
class Targeting:
    user_segments: tuple[str, ...] = ()
    rules: tuple[TargetingRule, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "user_segments", tuple(self.user_segments))
        object.__setattr__(self, "rules", tuple(self.rules))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Targeting:
        return cls(
            user_segments=tuple(_first(data, "userSegments", "segmentIds", "user_segments", default=())),
            rules=tuple(TargetingRule.from_dict(r) for r in data.get("rules", ())),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "userSegments": list(self.user_segments),
            "rules": [r.to_dict() for r in self.rules],
        }


@dataclasses.dataclass(frozen=True)
class Rollout:
    percentage: float = 100
    stickiness: Stickiness = Stickiness.RANDOM

    def __post_init__(self) -> None:
        object.__setattr__(self, "stickiness", Stickiness(self.stickiness))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Rollout:
        return cls(
            percentage=data.get("percentage", 100),
            stickiness=Stickiness(data.get("stickiness", Stickiness.RANDOM.value)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"percentage": self.percentage, "stickiness": self.stickiness.value}


# ---------------------------------------------------------------------------
# FeatureFlag
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class FeatureFlag:
    """A named, typed runtime toggle and its conditional logic."""

    id: str
    type: FlagType = FlagType.BOOLEAN
    value: FlagValue = None
    enabled: bool = False
    name: str = ""
    description: str = ""
    environment: str = "development"
    tags: tuple[str, ...] = ()
    dependencies: tuple[FlagDependency, ...] = ()
    targeting: Targeting | None = None
    rollout: Rollout | None = None
    variants: tuple[FlagVariant, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", FlagType(self.type))
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        object.__setattr__(self, "variants", tuple(self.variants))

    def find_variant(self, variant_id: str) -> FlagVariant | None:
        return next((v for v in self.variants if v.id == variant_id), None)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FeatureFlag:
        targeting = data.get("targeting")
        rollout = data.get("rollout")
        return cls(
            id=data["id"],
            type=FlagType(data.get("type", FlagType.BOOLEAN.value)),
            value=data.get("value"),
            enabled=data.get("enabled", False),
            name=data.get("name", ""),
            description=data.get("description", ""),
            environment=data.get("environment", "development"),
            tags=tuple(data.get("tags", ())),
            dependencies=tuple(FlagDependency.from_dict(d) for d in data.get("dependencies", ())),
            targeting=Targeting.from_dict(targeting) if targeting else None,
            rollout=Rollout.from_dict(rollout) if rollout else None,
            variants=tuple(FlagVariant.from_dict(v) for v in data.get("variants", ())),
            created_at=_parse_datetime(_first(data, "createdAt", "created_at")),
            updated_at=_parse_datetime(_first(data, "updatedAt", "updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type.value,
            "value": self.value,
            "enabled": self.enabled,
            "environment": self.environment,
            "tags": list(self.tags),
            "dependencies": [d.to_dict() for d in self.dependencies],
            "targeting": self.targeting.to_dict() if self.targeting else None,
            "rollout": self.rollout.to_dict() if self.rollout else None,
            "variants": [v.to_dict() for v in self.variants],
            "createdAt": _format_datetime(self.created_at),
            "updatedAt": _format_datetime(self.updated_at),
        }


# ---------------------------------------------------------------------------
# Overrides, context, results
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class FlagOverride:
    """Operator-supplied value that bypasses all conditional logic.

    Expiry is a read-time filter: an expired override stays stored but is
    ignored by evaluation.
    """

    flag_id: str
    value: FlagValue
    variant_id: str | None = None
    expires_at: datetime | None = None
    reason: str = ""
    user_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "expires_at", _parse_datetime(self.expires_at))

    def is_expired(self, now: datetime) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= _parse_datetime(now)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FlagOverride:
        return cls(
            flag_id=_first(data, "flagId", "flag_id"),
            value=data.get("value"),
            variant_id=_first(data, "variant", "variantId", "variant_id"),
            expires_at=_parse_datetime(_first(data, "expiresAt", "expires_at")),
            reason=data.get("reason", ""),
            user_id=_first(data, "userId", "user_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "flagId": self.flag_id,
            "value": self.value,
            "variant": self.variant_id,
            "expiresAt": _format_datetime(self.expires_at),
            "reason": self.reason,
            "userId": self.user_id,
        }


_CONTEXT_FIELDS = ("user_id", "session_id", "user_segment", "environment", "attributes")
_CONTEXT_ALIASES = {"userId": "user_id", "sessionId": "session_id", "userSegment": "user_segment"}


@dataclasses.dataclass(frozen=True)
class EvaluationContext:
    """Read-only description of who or what a flag is evaluated for."""

    user_id: str | None = None
    session_id: str | None = None
    user_segment: str | None = None
    environment: str | None = None
    attributes: dict[str, Any] = dataclasses.field(default_factory=dict)
    extra: dict[str, Any] = dataclasses.field(default_factory=dict)

    def as_mapping(self) -> dict[str, Any]:
        """JSON-like view used for dot-path attribute lookups.

        Extra fields sit at the top level next to the named fields; the
        camelCase spellings of the id fields are accepted as well.
        """
        mapping: dict[str, Any] = dict(self.extra)
        for name in _CONTEXT_FIELDS:
            mapping[name] = getattr(self, name)
        for alias, name in _CONTEXT_ALIASES.items():
            mapping.setdefault(alias, getattr(self, name))
        return mapping

    def merged(self, **changes: Any) -> EvaluationContext:
        """Shallow merge: named fields are replaced, unknown keys go to ``extra``."""
        known = {_CONTEXT_ALIASES.get(k, k): v for k, v in changes.items()}
        extra_changes = {k: v for k, v in known.items() if k not in _CONTEXT_FIELDS and k != "extra"}
        fields = {k: v for k, v in known.items() if k in _CONTEXT_FIELDS}
        extra = {**self.extra, **known.get("extra", {}), **extra_changes}
        return dataclasses.replace(self, extra=extra, **fields)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EvaluationContext:
        return cls().merged(**dict(data))

    @classmethod
    def coerce(cls, value: EvaluationContext | Mapping[str, Any] | None) -> EvaluationContext:
        """Accept a context, a plain mapping, or ``None`` (empty context)."""
        if value is None:
            return cls()
        if isinstance(value, EvaluationContext):
            return value
        return cls.from_dict(value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "sessionId": self.session_id,
            "userSegment": self.user_segment,
            "environment": self.environment,
            "attributes": dict(self.attributes),
            **self.extra,
        }


@dataclasses.dataclass(frozen=True)
class FlagEvaluation:
    """Outcome of one evaluation; ``reason`` names the deciding stage."""

    flag_id: str
    value: FlagValue
    reason: EvaluationReason
    variant: FlagVariant | None = None
    metadata: dict[str, Any] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class ExperimentVariant:
    id: str
    name: str = ""
    allocation: float = 0


@dataclasses.dataclass(frozen=True)
class Experiment:
    """A/B experiment bound to a flag. Stored by the manager, not evaluated."""

    id: str
    flag_id: str
    name: str = ""
    description: str = ""
    status: ExperimentStatus = ExperimentStatus.DRAFT
    variants: tuple[ExperimentVariant, ...] = ()
    start_date: datetime | None = None
    end_date: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", ExperimentStatus(self.status))
        object.__setattr__(self, "variants", tuple(self.variants))


__all__ = [
    "DependencyCondition",
    "EvaluationContext",
    "EvaluationReason",
    "Experiment",
    "ExperimentStatus",
    "ExperimentVariant",
    "FeatureFlag",
    "FlagDependency",
    "FlagEvaluation",
    "FlagOverride",
    "FlagType",
    "FlagValue",
    "FlagVariant",
    "Rollout",
    "RuleOperator",
    "SegmentRule",
    "Stickiness",
    "Targeting",
    "TargetingRule",
    "UserSegment",
]
