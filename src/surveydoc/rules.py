"""
Visibility Rule Structures

Every show/hide condition attached to a page, section, block or field is
represented as a small declarative structure, never as a code string.

This ensures:
    - Deterministic evaluation
    - Language independence
    - Serialization capability
    - Static analysis (which fields does a rule read?)

ARCHITECTURAL RULE:
    This module is structure only.
    Evaluation lives in surveydoc.visibility.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union


class RuleMode(Enum):
    """
    What a matching rule does to its node.

    SHOW: node is visible only while the conditions match
    HIDE: node is hidden while the conditions match
    """

    SHOW = "show"
    HIDE = "hide"


class RuleLogic(Enum):
    """How the individual condition results are combined."""

    ALL = "all"   # AND
    ANY = "any"   # OR


class ConditionOperator(Enum):
    """
    Operators a condition may apply to a field value.

    Keep this closed. Every operator here must be:
        - Meaningful for a single form value
        - Total (never raises on odd input)
    """

    # String comparisons
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"

    # Presence
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"

    # Truthiness of the raw value (checkboxes)
    IS_CHECKED = "isChecked"
    IS_NOT_CHECKED = "isNotChecked"

    # Numeric comparisons
    GREATER_THAN = "gt"
    LESS_THAN = "lt"
    GREATER_EQUAL = "gte"
    LESS_EQUAL = "lte"


NUMERIC_OPERATORS = frozenset({
    ConditionOperator.GREATER_THAN,
    ConditionOperator.LESS_THAN,
    ConditionOperator.GREATER_EQUAL,
    ConditionOperator.LESS_EQUAL,
})


def parse_operator(raw: object) -> Union[ConditionOperator, str]:
    """
    Map a wire operator name to the enum.

    Unknown names come back as the raw string so the condition is kept
    (and evaluates to False) instead of being dropped.
    """
    if isinstance(raw, ConditionOperator):
        return raw
    text = "" if raw is None else str(raw).strip()
    try:
        return ConditionOperator(text)
    except ValueError:
        return text


@dataclass(frozen=True)
class Condition:
    """
    A single test against one field value.

    Example:
        age >= 18

    Becomes:
        Condition(
            field_name="age",
            operator=ConditionOperator.GREATER_EQUAL,
            value="18",
        )

    Properties:
        field_name: Machine name of the field whose value is read
        operator: ConditionOperator, or the raw string if unknown
        value: Comparison literal (unused by presence/checked operators)

    IMPORTANT:
        This object does NOT check that field_name exists.
        Dangling references are reported by surveydoc.analyzer.
    """

    field_name: str
    operator: Union[ConditionOperator, str]
    value: Optional[str] = None

    @property
    def is_known_operator(self) -> bool:
        return isinstance(self.operator, ConditionOperator)


@dataclass(frozen=True)
class VisibilityRule:
    """
    Declarative show/hide rule attached to any non-root node.

    Properties:
        mode: RuleMode.SHOW or RuleMode.HIDE
        logic: RuleLogic.ALL (AND) or RuleLogic.ANY (OR)
        conditions: Ordered conditions

    INVARIANT:
        A rule with zero conditions means "always visible",
        whatever its mode.
    """

    mode: RuleMode = RuleMode.SHOW
    logic: RuleLogic = RuleLogic.ALL
    conditions: Tuple[Condition, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return len(self.conditions) == 0

    def referenced_fields(self) -> Tuple[str, ...]:
        """Field names read by this rule, in condition order, without repeats."""
        seen = []
        for cond in self.conditions:
            if cond.field_name not in seen:
                seen.append(cond.field_name)
        return tuple(seen)
