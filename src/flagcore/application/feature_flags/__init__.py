"""Application feature flags – evaluation engine and flag state container."""
from flagcore.application.feature_flags.defaults import type_default
from flagcore.application.feature_flags.evaluator import FlagEvaluator, select_variant
from flagcore.application.feature_flags.events import (
    ContextUpdated,
    ExperimentsUpdated,
    FlagAdded,
    FlagEvaluated,
    FlagEvent,
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
from flagcore.application.feature_flags.hashing import hash_string
from flagcore.application.feature_flags.manager import FeatureFlagManager
from flagcore.application.feature_flags.models import (
    DependencyCondition,
    EvaluationContext,
    EvaluationReason,
    Experiment,
    ExperimentStatus,
    ExperimentVariant,
    FeatureFlag,
    FlagDependency,
    FlagEvaluation,
    FlagOverride,
    FlagType,
    FlagVariant,
    Rollout,
    RuleOperator,
    SegmentRule,
    Stickiness,
    Targeting,
    TargetingRule,
    UserSegment,
)
from flagcore.application.feature_flags.paths import get_path
from flagcore.application.feature_flags.provider import FeatureFlagProvider, ManagerFeatureFlagProvider
from flagcore.application.feature_flags.validation import ensure_valid, validate_flag

__all__ = [
    "ContextUpdated",
    "DependencyCondition",
    "EvaluationContext",
    "EvaluationReason",
    "Experiment",
    "ExperimentStatus",
    "ExperimentVariant",
    "ExperimentsUpdated",
    "FeatureFlag",
    "FeatureFlagManager",
    "FeatureFlagProvider",
    "FlagAdded",
    "FlagDependency",
    "FlagEvaluated",
    "FlagEvaluation",
    "FlagEvaluator",
    "FlagEvent",
    "FlagEventBus",
    "FlagEventKind",
    "FlagEventListener",
    "FlagOverride",
    "FlagRemoved",
    "FlagType",
    "FlagUpdated",
    "FlagVariant",
    "FlagsUpdated",
    "ManagerFeatureFlagProvider",
    "OverrideRemoved",
    "OverrideSet",
    "OverridesCleared",
    "Rollout",
    "RuleOperator",
    "SegmentRule",
    "SegmentsUpdated",
    "Stickiness",
    "Targeting",
    "TargetingRule",
    "UserSegment",
    "ensure_valid",
    "get_path",
    "hash_string",
    "select_variant",
    "type_default",
    "validate_flag",
]
