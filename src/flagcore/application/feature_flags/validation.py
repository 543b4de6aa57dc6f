"""Feature flags – definition validation."""
from __future__ import annotations

from flagcore.application.feature_flags.models import FeatureFlag
from flagcore.kernel.errors import ValidationError

_WEIGHT_TOLERANCE = 0.01


def validate_flag(flag: FeatureFlag) -> list[str]:
    """Return one message per problem found in *flag* (empty when valid)."""
    errors: list[str] = []

    if not flag.id or not flag.id.strip():
        errors.append("Flag ID is required")

    if not flag.name or not flag.name.strip():
        errors.append("Flag name is required")

    if flag.variants:
        total_weight = sum(v.weight for v in flag.variants)
        if abs(total_weight - 100) > _WEIGHT_TOLERANCE:
            errors.append("Variant weights must sum to 100%")
        variant_ids = [v.id for v in flag.variants]
        if len(set(variant_ids)) != len(variant_ids):
            errors.append("Variant IDs must be unique")

    if flag.rollout is not None and not 0 <= flag.rollout.percentage <= 100:
        errors.append("Rollout percentage must be between 0 and 100")

    if any(dep.flag_id == flag.id for dep in flag.dependencies):
        errors.append("Flag cannot depend on itself")

    return errors


def ensure_valid(flag: FeatureFlag) -> None:
    """Raise :class:`ValidationError` listing every problem in *flag*."""
    errors = validate_flag(flag)
    if errors:
        raise ValidationError(
            f"Invalid flag definition '{flag.id}'",
            errors=errors,
            detail={"flag_id": flag.id},
        )


__all__ = ["ensure_valid", "validate_flag"]
