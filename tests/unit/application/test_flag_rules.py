"""Unit tests for feature flag building blocks – hashing, paths, rules, defaults."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from flagcore.application.feature_flags import (
    FeatureFlag,
    FlagType,
    FlagVariant,
    RuleOperator,
    SegmentRule,
    TargetingRule,
    UserSegment,
    get_path,
    hash_string,
    type_default,
)
from flagcore.application.feature_flags.hashing import rollout_bucket, variant_bucket
from flagcore.application.feature_flags.rules import (
    evaluate_condition,
    matches_rule,
    matches_segment,
    strict_equals,
)
from flagcore.kernel.types import Nothing, Some


# ---------------------------------------------------------------------------
# hash_string
# ---------------------------------------------------------------------------


class TestHashString:
    def test_empty_string(self) -> None:
        assert hash_string("") == 0

    def test_single_character(self) -> None:
        assert hash_string("a") == 97

    def test_two_characters(self) -> None:
        assert hash_string("ab") == 97 * 31 + 98

    def test_known_positive_value(self) -> None:
        assert hash_string("hello") == 99162322

    def test_negative_wrap_takes_absolute_value(self) -> None:
        assert hash_string("Hello World") == 862545276

    def test_non_bmp_uses_surrogate_pair(self) -> None:
        assert hash_string("\U0001F600") == 0xD83D * 31 + 0xDE00

    @given(st.text())
    def test_range_and_determinism(self, text: str) -> None:
        h = hash_string(text)
        assert 0 <= h <= 2**31
        assert hash_string(text) == h


class TestBuckets:
    def test_rollout_bucket_is_one_based(self) -> None:
        assert rollout_bucket("hel", "lo") == (99162322, 23)

    def test_variant_bucket_is_zero_based(self) -> None:
        assert variant_bucket("hel", "lo") == 22

    @given(st.text(max_size=20), st.text(max_size=40))
    def test_bucket_ranges(self, flag_id: str, value: str) -> None:
        _, bucket = rollout_bucket(flag_id, value)
        assert 1 <= bucket <= 100
        assert 0 <= variant_bucket(flag_id, value) <= 99


# ---------------------------------------------------------------------------
# get_path
# ---------------------------------------------------------------------------


class TestGetPath:
    def test_top_level(self) -> None:
        assert get_path({"a": 1}, "a") == Some(1)

    def test_nested(self) -> None:
        assert get_path({"a": {"b": {"c": "x"}}}, "a.b.c") == Some("x")

    def test_missing_key(self) -> None:
        assert get_path({"a": {}}, "a.b").is_none()

    def test_non_mapping_intermediate(self) -> None:
        assert get_path({"a": 5}, "a.b") == Nothing()

    def test_stored_none_is_present(self) -> None:
        assert get_path({"a": None}, "a") == Some(None)

    def test_non_mapping_root(self) -> None:
        assert get_path(["a"], "a").is_none()


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class TestStrictEquals:
    def test_bool_is_not_int(self) -> None:
        assert strict_equals(True, 1) is False
        assert strict_equals(0, False) is False

    def test_int_and_float(self) -> None:
        assert strict_equals(1, 1.0) is True

    def test_string_is_not_number(self) -> None:
        assert strict_equals("1", 1) is False

    def test_none(self) -> None:
        assert strict_equals(None, None) is True


class TestEvaluateCondition:
    @pytest.mark.parametrize(
        ("actual", "operator", "values", "expected"),
        [
            ("US", RuleOperator.EQUALS, ["US", "CA"], True),
            ("FR", RuleOperator.EQUALS, ["US", "CA"], False),
            ("FR", RuleOperator.NOT_EQUALS, ["US"], True),
            ("US", RuleOperator.NOT_EQUALS, ["US"], False),
            ("b", RuleOperator.IN, ["a", "b"], True),
            (["x", "b"], RuleOperator.IN, ["a", "b"], True),
            (["x", "y"], RuleOperator.IN, ["a", "b"], False),
            ("c", RuleOperator.NOT_IN, ["a", "b"], True),
            (["x", "a"], RuleOperator.NOT_IN, ["a", "b"], False),
            (21, RuleOperator.GREATER_THAN, [18], True),
            (18, RuleOperator.GREATER_THAN, [18], False),
            (3.5, RuleOperator.LESS_THAN, [4], True),
            ("20", RuleOperator.GREATER_THAN, [18], False),
            (21, RuleOperator.GREATER_THAN, ["18"], False),
            (True, RuleOperator.GREATER_THAN, [0], False),
            ("user@acme.com", RuleOperator.CONTAINS, ["acme"], True),
            ("user@other.com", RuleOperator.CONTAINS, ["acme"], False),
            (["acme"], RuleOperator.CONTAINS, ["acme"], False),
            (None, RuleOperator.EQUALS, ["x"], False),
            (None, RuleOperator.NOT_EQUALS, ["x"], True),
            (1, RuleOperator.EQUALS, [True], False),
        ],
    )
    def test_operators(self, actual: object, operator: RuleOperator, values: list, expected: bool) -> None:
        assert evaluate_condition(actual, operator, values) is expected

    def test_empty_values_never_equal(self) -> None:
        assert evaluate_condition("x", RuleOperator.EQUALS, []) is False


class TestRuleMatching:
    def test_rule_reads_dot_path(self) -> None:
        rule = SegmentRule("attributes.plan", RuleOperator.EQUALS, ["pro"])
        assert matches_rule(rule, {"attributes": {"plan": "pro"}}) is True

    def test_rule_on_absent_attribute(self) -> None:
        rule = SegmentRule("attributes.plan", RuleOperator.EQUALS, ["pro"])
        assert matches_rule(rule, {}) is False

    def test_disabled_targeting_rule(self) -> None:
        rule = TargetingRule("plan", RuleOperator.EQUALS, ["pro"], enabled=False)
        assert matches_rule(rule, {"plan": "pro"}) is False

    def test_segment_requires_all_rules(self) -> None:
        segment = UserSegment(
            id="adult-pro",
            rules=(
                SegmentRule("plan", RuleOperator.EQUALS, ["pro"]),
                SegmentRule("age", RuleOperator.GREATER_THAN, [17]),
            ),
        )
        assert matches_segment(segment, {"plan": "pro", "age": 30}) is True
        assert matches_segment(segment, {"plan": "pro", "age": 10}) is False

    def test_empty_segment_matches(self) -> None:
        assert matches_segment(UserSegment(id="all"), {}) is True

    def test_values_are_stored_as_tuple(self) -> None:
        assert SegmentRule("a", "in", ["x"]).values == ("x",)
        assert SegmentRule("a", "in", ["x"]).operator is RuleOperator.IN


# ---------------------------------------------------------------------------
# type_default
# ---------------------------------------------------------------------------


class TestTypeDefault:
    def test_scalar_types(self) -> None:
        assert type_default(FeatureFlag(id="b", type=FlagType.BOOLEAN)) is False
        assert type_default(FeatureFlag(id="s", type=FlagType.STRING)) == ""
        assert type_default(FeatureFlag(id="n", type=FlagType.NUMBER)) == 0

    def test_json_default_is_fresh(self) -> None:
        flag = FeatureFlag(id="j", type=FlagType.JSON)
        first = type_default(flag)
        first["mutated"] = True
        assert type_default(flag) == {}

    def test_multivariate_uses_first_variant(self) -> None:
        flag = FeatureFlag(
            id="m",
            type="multivariate",
            variants=(FlagVariant("a", "alpha", 50), FlagVariant("b", "beta", 50)),
        )
        assert type_default(flag) == "alpha"

    def test_multivariate_without_variants(self) -> None:
        assert type_default(FeatureFlag(id="m", type=FlagType.MULTIVARIATE)) is None
