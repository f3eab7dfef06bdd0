"""
Visibility rule evaluation.

Evaluates the declarative rules of surveydoc.rules against a flat map of
current field values (field name -> raw value). Evaluation is total:
unknown fields read as empty, mistyped values are coerced, and unknown
operators evaluate to False.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, Mapping, Optional, Set

from surveydoc.model import Survey
from surveydoc.rules import (
    NUMERIC_OPERATORS,
    Condition,
    ConditionOperator,
    RuleLogic,
    RuleMode,
    VisibilityRule,
)


logger = logging.getLogger(__name__)


def value_to_string(value: Any) -> str:
    """
    Canonical string form of a raw field value.

    None -> "", booleans -> "true"/"false", lists -> items joined with ","
    (multi-choice answers), everything else str(). Integral floats render
    without a fractional part, so 18.0 and "18" compare equal.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(value_to_string(v) for v in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def as_number(text: Any) -> Optional[float]:
    """
    Parse a finite number, or return None.

    A blank string counts as 0, as in a form where nothing was typed yet.
    None (no literal at all) is not a number.
    """
    if text is None or isinstance(text, bool):
        return None
    if isinstance(text, (int, float)):
        return float(text) if math.isfinite(text) else None
    s = value_to_string(text).strip()
    if not s:
        return 0.0
    if "_" in s:
        return None
    try:
        n = float(s)
    except ValueError:
        return None
    return n if math.isfinite(n) else None


def is_checked(value: Any) -> bool:
    """
    Checkbox truthiness of a raw value.

    Only None, False, "", 0 and NaN are unchecked; empty lists and
    dicts count as checked.
    """
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def _compare(op: ConditionOperator, a: float, b: float) -> bool:
    if op is ConditionOperator.GREATER_THAN:
        return a > b
    if op is ConditionOperator.LESS_THAN:
        return a < b
    if op is ConditionOperator.GREATER_EQUAL:
        return a >= b
    return a <= b


def evaluate_condition(cond: Condition, values: Mapping[str, Any]) -> bool:
    """
    Evaluate a single condition.

    String operators compare the trimmed string form of the field value.
    isChecked/isNotChecked test the truthiness of the raw value (see
    is_checked). Numeric operators need both sides to parse as finite
    numbers, otherwise the condition is False; a blank field value reads
    as 0.
    """
    raw = values.get(cond.field_name)
    s = value_to_string(raw).strip()
    literal = value_to_string(cond.value)
    op = cond.operator

    if op is ConditionOperator.EQUALS:
        return s == literal.strip()
    if op is ConditionOperator.NOT_EQUALS:
        return s != literal.strip()
    if op is ConditionOperator.CONTAINS:
        return literal in s
    if op is ConditionOperator.IS_EMPTY:
        return s == ""
    if op is ConditionOperator.IS_NOT_EMPTY:
        return s != ""
    if op is ConditionOperator.IS_CHECKED:
        return is_checked(raw)
    if op is ConditionOperator.IS_NOT_CHECKED:
        return not is_checked(raw)
    if op in NUMERIC_OPERATORS:
        a = as_number(s)
        b = as_number(cond.value)
        if a is None or b is None:
            return False
        return _compare(op, a, b)

    logger.debug("Unknown operator %r on field %r evaluates to False", op, cond.field_name)
    return False


def is_visible(rule: Optional[VisibilityRule], values: Mapping[str, Any]) -> bool:
    """
    Decide whether a node carrying rule is visible.

    Args:
        rule: The node's rule, or None
        values: Field name -> current raw value

    Returns:
        True when there is no rule or it has no conditions. Otherwise the
        conditions are combined with AND (logic "all") or OR (logic "any"),
        and the result is inverted for mode "hide".
    """
    if rule is None or rule.is_empty:
        return True
    results = [evaluate_condition(c, values) for c in rule.conditions]
    matched = all(results) if rule.logic is RuleLogic.ALL else any(results)
    return matched if rule.mode is RuleMode.SHOW else not matched


def collect_values(survey: Survey) -> Dict[str, Any]:
    """
    Build the value map from the `value` held by each field.

    Keys are field names, falling back to ids. With duplicate names the
    later field in document order wins.
    """
    values: Dict[str, Any] = {}
    for _, _, _, f in survey.iter_fields():
        if f.key:
            values[f.key] = f.value
    return values


def visible_node_ids(survey: Survey, values: Mapping[str, Any]) -> Set[str]:
    """
    Ids of every node that is visible, cascading down the tree.

    A node is visible only if its own rule passes and all of its
    ancestors are visible. Nodes without ids are skipped in the result
    but still gate their descendants.
    """
    visible: Set[str] = set()

    def mark(node_id: Optional[str]) -> None:
        if node_id:
            visible.add(node_id)

    for page in survey.pages:
        if not is_visible(page.visibility, values):
            continue
        mark(page.id)
        for section in page.sections:
            if not is_visible(section.visibility, values):
                continue
            mark(section.id)
            for block in section.blocks:
                if not is_visible(block.visibility, values):
                    continue
                mark(block.id)
                for f in block.fields:
                    if is_visible(f.visibility, values):
                        mark(f.id)
    return visible
