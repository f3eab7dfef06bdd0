"""
Tests for visibility rule structures.

These tests verify:
    - Rule and condition creation
    - Immutability
    - Operator parsing (known and unknown names)
    - Referenced-field inventory
"""

import pytest
from surveydoc.rules import (
    Condition,
    ConditionOperator,
    RuleLogic,
    RuleMode,
    VisibilityRule,
    NUMERIC_OPERATORS,
    parse_operator,
)


class TestCondition:
    """Test single conditions."""

    def test_create_condition(self):
        """Should store field name, operator and literal."""
        cond = Condition("age", ConditionOperator.GREATER_EQUAL, "18")
        assert cond.field_name == "age"
        assert cond.operator is ConditionOperator.GREATER_EQUAL
        assert cond.value == "18"

    def test_value_is_optional(self):
        """Presence operators need no literal."""
        cond = Condition("consent", ConditionOperator.IS_CHECKED)
        assert cond.value is None

    def test_condition_immutable(self):
        """Conditions should be immutable."""
        cond = Condition("age", ConditionOperator.EQUALS, "1")
        with pytest.raises(AttributeError):
            cond.value = "2"

    def test_unknown_operator_flag(self):
        """A raw string operator is reported as unknown."""
        assert Condition("x", ConditionOperator.EQUALS, "1").is_known_operator
        assert not Condition("x", "between", "1").is_known_operator


class TestParseOperator:
    """Test wire operator parsing."""

    @pytest.mark.parametrize("raw,expected", [
        ("equals", ConditionOperator.EQUALS),
        ("notEquals", ConditionOperator.NOT_EQUALS),
        ("gte", ConditionOperator.GREATER_EQUAL),
        (" isChecked ", ConditionOperator.IS_CHECKED),
    ])
    def test_known_operators(self, raw, expected):
        assert parse_operator(raw) is expected

    def test_unknown_operator_kept_as_string(self):
        """Unknown names survive so the condition can evaluate to False."""
        assert parse_operator("matches") == "matches"

    def test_none_operator(self):
        assert parse_operator(None) == ""

    def test_enum_passthrough(self):
        assert parse_operator(ConditionOperator.LESS_THAN) is ConditionOperator.LESS_THAN

    def test_numeric_operator_set(self):
        assert ConditionOperator.GREATER_THAN in NUMERIC_OPERATORS
        assert ConditionOperator.EQUALS not in NUMERIC_OPERATORS


class TestVisibilityRule:
    """Test rule containers."""

    def test_defaults(self):
        """Default rule is show/all with no conditions."""
        rule = VisibilityRule()
        assert rule.mode is RuleMode.SHOW
        assert rule.logic is RuleLogic.ALL
        assert rule.is_empty

    def test_rule_immutable(self):
        rule = VisibilityRule()
        with pytest.raises(AttributeError):
            rule.mode = RuleMode.HIDE

    def test_referenced_fields_in_order_without_repeats(self):
        rule = VisibilityRule(
            logic=RuleLogic.ANY,
            conditions=(
                Condition("b", ConditionOperator.IS_EMPTY),
                Condition("a", ConditionOperator.EQUALS, "1"),
                Condition("b", ConditionOperator.EQUALS, "x"),
            ),
        )
        assert rule.referenced_fields() == ("b", "a")
        assert not rule.is_empty

    def test_rules_compare_by_value(self):
        """Frozen dataclasses give structural equality."""
        a = VisibilityRule(conditions=(Condition("x", ConditionOperator.IS_CHECKED),))
        b = VisibilityRule(conditions=(Condition("x", ConditionOperator.IS_CHECKED),))
        assert a == b
