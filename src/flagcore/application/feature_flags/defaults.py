"""Feature flags – type defaults returned when a flag's value is withheld."""
from __future__ import annotations

from flagcore.application.feature_flags.models import FeatureFlag, FlagType, FlagValue


def type_default(flag: FeatureFlag) -> FlagValue:
    """Default for *flag*'s type; total over :class:`FlagType`."""
    if flag.type is FlagType.BOOLEAN:
        return False
    if flag.type is FlagType.STRING:
        return ""
    if flag.type is FlagType.NUMBER:
        return 0
    if flag.type is FlagType.JSON:
        return {}
    # multivariate
    return flag.variants[0].value if flag.variants else None


__all__ = ["type_default"]
