"""Unit tests for feature flag models, validation and the provider port."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from flagcore.application.feature_flags import (
    DependencyCondition,
    EvaluationContext,
    FeatureFlag,
    FeatureFlagManager,
    FeatureFlagProvider,
    FlagDependency,
    FlagEvaluator,
    FlagOverride,
    FlagType,
    FlagVariant,
    ManagerFeatureFlagProvider,
    Rollout,
    Stickiness,
    ensure_valid,
    validate_flag,
)
from flagcore.kernel.errors import ValidationError
from flagcore.testing.fakes import FakeClock


# ---------------------------------------------------------------------------
# FeatureFlag
# ---------------------------------------------------------------------------


class TestFeatureFlag:
    def test_frozen(self) -> None:
        flag = FeatureFlag(id="dark-mode")
        with pytest.raises((AttributeError, TypeError)):
            flag.enabled = True  # type: ignore[misc]

    def test_defaults(self) -> None:
        flag = FeatureFlag(id="f")
        assert flag.type is FlagType.BOOLEAN
        assert flag.enabled is False
        assert flag.variants == ()
        assert flag.targeting is None
        assert flag.rollout is None

    def test_from_dict_camel_case(self) -> None:
        flag = FeatureFlag.from_dict({
            "id": "new-checkout",
            "name": "New checkout",
            "type": "multivariate",
            "enabled": True,
            "tags": ["checkout"],
            "dependencies": [{"targetFlagId": "payments", "condition": "equals", "expectedValue": "v2"}],
            "targeting": {"userSegments": ["beta"], "rules": [{"attribute": "country", "operator": "in", "values": ["US"]}]},
            "rollout": {"percentage": 25, "stickiness": "userId"},
            "variants": [{"id": "a", "value": "A", "weight": 100}],
            "createdAt": "2026-01-01T00:00:00+00:00",
        })
        assert flag.type is FlagType.MULTIVARIATE
        assert flag.dependencies[0].condition is DependencyCondition.EQUALS
        assert flag.dependencies[0].expected_value == "v2"
        assert flag.targeting.user_segments == ("beta",)
        assert flag.targeting.rules[0].values == ("US",)
        assert flag.rollout == Rollout(25, Stickiness.USER_ID)
        assert flag.created_at == datetime(2026, 1, 1, tzinfo=UTC)

    def test_to_dict_round_trip(self) -> None:
        flag = FeatureFlag(
            id="f",
            name="F",
            type=FlagType.STRING,
            value="x",
            enabled=True,
            rollout=Rollout(percentage=10, stickiness="sessionId"),
            variants=(FlagVariant("a", "A", 100),),
        )
        assert FeatureFlag.from_dict(flag.to_dict()) == flag

    def test_null_variant_weight_reads_as_zero(self) -> None:
        flag = FeatureFlag.from_dict({
            "id": "f",
            "enabled": True,
            "variants": [{"id": "a", "value": "A", "weight": None}, {"id": "b", "value": "B", "weight": 100}],
        })
        assert flag.variants[0].weight == 0
        result = asyncio.run(FlagEvaluator(get_flag={"f": flag}.get).evaluate("f", {"userId": "u1"}))
        assert result.variant.id == "b"

    def test_find_variant(self) -> None:
        flag = FeatureFlag(id="f", variants=(FlagVariant("a", 1, 50), FlagVariant("b", 2, 50)))
        assert flag.find_variant("b").value == 2
        assert flag.find_variant("z") is None

    def test_rollout_stickiness_defaults_to_random(self) -> None:
        assert Rollout(percentage=50).stickiness is Stickiness.RANDOM
        assert Rollout.from_dict({"percentage": 50}).stickiness is Stickiness.RANDOM


# ---------------------------------------------------------------------------
# FlagOverride
# ---------------------------------------------------------------------------


class TestFlagOverride:
    NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def test_never_expires_without_deadline(self) -> None:
        assert FlagOverride(flag_id="f", value=True).is_expired(self.NOW) is False

    def test_expired_at_deadline(self) -> None:
        override = FlagOverride(flag_id="f", value=True, expires_at=self.NOW)
        assert override.is_expired(self.NOW) is True

    def test_dict_layout(self) -> None:
        override = FlagOverride(flag_id="f", value=0, variant_id="b", expires_at=self.NOW, reason="qa")
        data = override.to_dict()
        assert data["flagId"] == "f"
        assert data["variant"] == "b"
        assert data["expiresAt"] == "2026-01-01T12:00:00+00:00"
        assert FlagOverride.from_dict(data) == override

    def test_from_dict_snake_case(self) -> None:
        override = FlagOverride.from_dict({"flag_id": "f", "value": False, "variant_id": "a"})
        assert override.flag_id == "f"
        assert override.variant_id == "a"

    def test_naive_expiry_becomes_utc(self) -> None:
        override = FlagOverride(flag_id="f", value=True, expires_at=datetime(2026, 1, 1, 12, 0))
        assert override.expires_at == self.NOW
        assert override.is_expired(self.NOW) is True

    def test_from_dict_without_timezone(self) -> None:
        override = FlagOverride.from_dict({"flagId": "f", "value": 1, "expiresAt": "2026-01-01T13:00:00"})
        assert override.expires_at.tzinfo is not None
        assert override.is_expired(self.NOW) is False

    def test_naive_now_is_accepted(self) -> None:
        override = FlagOverride(flag_id="f", value=True, expires_at=self.NOW)
        assert override.is_expired(datetime(2026, 1, 1, 11, 0)) is False

    def test_iso_string_expiry_is_parsed(self) -> None:
        override = FlagOverride(flag_id="f", value=True, expires_at="2026-01-01T12:00:00+00:00")  # type: ignore[arg-type]
        assert override.expires_at == self.NOW


# ---------------------------------------------------------------------------
# EvaluationContext
# ---------------------------------------------------------------------------


class TestEvaluationContext:
    def test_coerce_none(self) -> None:
        assert EvaluationContext.coerce(None) == EvaluationContext()

    def test_coerce_passthrough(self) -> None:
        ctx = EvaluationContext(user_id="u")
        assert EvaluationContext.coerce(ctx) is ctx

    def test_coerce_mapping_routes_unknown_keys_to_extra(self) -> None:
        ctx = EvaluationContext.coerce({"userId": "u", "sessionId": "s", "tenant": "acme"})
        assert ctx.user_id == "u"
        assert ctx.session_id == "s"
        assert ctx.extra == {"tenant": "acme"}

    def test_as_mapping_exposes_both_spellings(self) -> None:
        mapping = EvaluationContext(user_id="u", extra={"tenant": "acme"}).as_mapping()
        assert mapping["user_id"] == "u"
        assert mapping["userId"] == "u"
        assert mapping["tenant"] == "acme"

    def test_merged_replaces_attributes(self) -> None:
        ctx = EvaluationContext(attributes={"a": 1, "b": 2}).merged(attributes={"c": 3})
        assert ctx.attributes == {"c": 3}

    def test_to_dict(self) -> None:
        data = EvaluationContext(user_id="u", attributes={"plan": "pro"}, extra={"tenant": "t"}).to_dict()
        assert data["userId"] == "u"
        assert data["attributes"] == {"plan": "pro"}
        assert data["tenant"] == "t"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidateFlag:
    def test_valid_flag(self) -> None:
        flag = FeatureFlag(
            id="f",
            name="F",
            variants=(FlagVariant("a", 1, 60), FlagVariant("b", 2, 40)),
            rollout=Rollout(percentage=50),
        )
        assert validate_flag(flag) == []

    def test_missing_id_and_name(self) -> None:
        errors = validate_flag(FeatureFlag(id="  ", name=""))
        assert "Flag ID is required" in errors
        assert "Flag name is required" in errors

    def test_weights_must_sum_to_hundred(self) -> None:
        flag = FeatureFlag(id="f", name="F", variants=(FlagVariant("a", 1, 30), FlagVariant("b", 2, 30)))
        assert validate_flag(flag) == ["Variant weights must sum to 100%"]

    def test_weights_tolerate_rounding(self) -> None:
        thirds = tuple(FlagVariant(str(i), i, 100 / 3) for i in range(3))
        assert validate_flag(FeatureFlag(id="f", name="F", variants=thirds)) == []

    def test_duplicate_variant_ids(self) -> None:
        flag = FeatureFlag(id="f", name="F", variants=(FlagVariant("a", 1, 50), FlagVariant("a", 2, 50)))
        assert validate_flag(flag) == ["Variant IDs must be unique"]

    @pytest.mark.parametrize("percentage", [-1, 101])
    def test_rollout_out_of_range(self, percentage: float) -> None:
        flag = FeatureFlag(id="f", name="F", rollout=Rollout(percentage=percentage))
        assert validate_flag(flag) == ["Rollout percentage must be between 0 and 100"]

    def test_self_dependency(self) -> None:
        flag = FeatureFlag(id="f", name="F", dependencies=(FlagDependency("f"),))
        assert validate_flag(flag) == ["Flag cannot depend on itself"]

    def test_ensure_valid_raises_with_all_errors(self) -> None:
        flag = FeatureFlag(id="f", name="", dependencies=(FlagDependency("f"),))
        with pytest.raises(ValidationError) as exc_info:
            ensure_valid(flag)
        err = exc_info.value
        assert len(err.errors) == 2
        assert err.detail == {"flag_id": "f"}
        assert err.to_dict()["errors"] == err.errors


# ---------------------------------------------------------------------------
# Provider port
# ---------------------------------------------------------------------------


class TestManagerFeatureFlagProvider:
    def _provider(self) -> ManagerFeatureFlagProvider:
        manager = FeatureFlagManager(clock=FakeClock())
        manager.add_flag(FeatureFlag(id="on", value=True, enabled=True))
        manager.add_flag(FeatureFlag(id="off", value=True, enabled=False))
        manager.add_flag(FeatureFlag(id="ab", variants=(FlagVariant("only", "x", 100),)))
        return ManagerFeatureFlagProvider(manager)

    def test_is_abstract_port(self) -> None:
        with pytest.raises(TypeError):
            FeatureFlagProvider()  # type: ignore[abstract]

    def test_is_enabled(self) -> None:
        provider = self._provider()
        assert asyncio.run(provider.is_enabled("on")) is True
        assert asyncio.run(provider.is_enabled("off")) is False

    def test_unknown_flag_is_disabled(self) -> None:
        assert asyncio.run(self._provider().is_enabled("ghost")) is False

    def test_get_variant(self) -> None:
        provider = self._provider()
        assert asyncio.run(provider.get_variant("ab", {"userId": "u1"})) == "only"
        assert asyncio.run(provider.get_variant("on")) is None
