"""
Serialization helpers for survey documents (Survey, Field, VisibilityRule, etc.).

Provides lossless JSON/YAML round-trip via an intermediate dict in the
wire shape shared with the editor and the persistence layer:

    { title, pages: [{ title, sections: [{ title, blocks: [{ title,
      fields: [{ type, name, label, required, multiple?, colSpan?,
      options?, columns? }] }] }] }] }

Keys are camelCase; optional keys are omitted when unset. The from_dict
direction expects this shape; untrusted input goes through
surveydoc.normalizer instead.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import yaml

from surveydoc.model import (
    Survey,
    Page,
    Section,
    Block,
    Field,
    Option,
    TableColumn,
)
from surveydoc.rules import (
    Condition,
    ConditionOperator,
    RuleLogic,
    RuleMode,
    VisibilityRule,
    parse_operator,
)


def _put(d: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        d[key] = value


def rule_to_dict(rule: VisibilityRule | None) -> Dict[str, Any] | None:
    if rule is None:
        return None
    conditions = []
    for c in rule.conditions:
        op = c.operator.value if isinstance(c.operator, ConditionOperator) else c.operator
        cd: Dict[str, Any] = {"fieldName": c.field_name, "operator": op}
        _put(cd, "value", c.value)
        conditions.append(cd)
    return {"mode": rule.mode.value, "logic": rule.logic.value, "conditions": conditions}


def rule_from_dict(d: Dict[str, Any] | None) -> VisibilityRule | None:
    if d is None:
        return None
    return VisibilityRule(
        mode=RuleMode(d.get("mode", "show")),
        logic=RuleLogic(d.get("logic", "all")),
        conditions=tuple(
            Condition(
                field_name=c["fieldName"],
                operator=parse_operator(c.get("operator")),
                value=c.get("value"),
            )
            for c in d.get("conditions", [])
        ),
    )


def option_to_dict(o: Option) -> Dict[str, Any]:
    return {"value": o.value, "label": o.label}


def option_from_dict(d: Dict[str, Any]) -> Option:
    return Option(value=d["value"], label=d.get("label", d["value"]))


def _options_to_list(options: Optional[List[Option]]) -> Optional[List[Dict[str, Any]]]:
    if options is None:
        return None
    return [option_to_dict(o) for o in options]


def _options_from_list(items: Optional[List[Dict[str, Any]]]) -> Optional[List[Option]]:
    if items is None:
        return None
    return [option_from_dict(o) for o in items]


def column_to_dict(c: TableColumn) -> Dict[str, Any]:
    d: Dict[str, Any] = {"key": c.key, "label": c.label, "type": c.type, "required": c.required}
    _put(d, "id", c.id)
    _put(d, "options", _options_to_list(c.options))
    _put(d, "min", c.min)
    _put(d, "max", c.max)
    _put(d, "widthPct", c.width_pct)
    return d


def column_from_dict(d: Dict[str, Any]) -> TableColumn:
    return TableColumn(
        key=d["key"],
        label=d.get("label", d["key"]),
        type=d.get("type", "text"),
        id=d.get("id"),
        required=d.get("required", False),
        options=_options_from_list(d.get("options")),
        min=d.get("min"),
        max=d.get("max"),
        width_pct=d.get("widthPct"),
    )


def field_to_dict(f: Field) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    _put(d, "id", f.id)
    d["type"] = f.type
    d["name"] = f.name
    d["label"] = f.label
    d["required"] = f.required
    if f.multiple:
        d["multiple"] = True
    _put(d, "colSpan", f.col_span)
    _put(d, "options", _options_to_list(f.options))
    if f.columns is not None:
        d["columns"] = [column_to_dict(c) for c in f.columns]
    _put(d, "rows", f.rows)
    _put(d, "visibility", rule_to_dict(f.visibility))
    _put(d, "placeholder", f.placeholder)
    _put(d, "tooltip", f.tooltip)
    _put(d, "min", f.min)
    _put(d, "max", f.max)
    _put(d, "step", f.step)
    _put(d, "pattern", f.pattern)
    _put(d, "tabIndex", f.tab_index)
    _put(d, "value", f.value)
    for k, v in f.extras.items():
        d.setdefault(k, v)
    return d


_FIELD_WIRE_KEYS = {
    "id", "type", "name", "label", "required", "multiple", "colSpan", "options",
    "columns", "rows", "visibility", "placeholder", "tooltip", "min", "max",
    "step", "pattern", "tabIndex", "value",
}


def field_from_dict(d: Dict[str, Any]) -> Field:
    columns = d.get("columns")
    return Field(
        type=d.get("type", "text"),
        name=d.get("name", ""),
        label=d.get("label", ""),
        id=d.get("id"),
        required=d.get("required", False),
        multiple=d.get("multiple", False),
        col_span=d.get("colSpan"),
        options=_options_from_list(d.get("options")),
        columns=None if columns is None else [column_from_dict(c) for c in columns],
        rows=d.get("rows"),
        visibility=rule_from_dict(d.get("visibility")),
        placeholder=d.get("placeholder"),
        tooltip=d.get("tooltip"),
        min=d.get("min"),
        max=d.get("max"),
        step=d.get("step"),
        pattern=d.get("pattern"),
        tab_index=d.get("tabIndex"),
        value=d.get("value"),
        extras={k: v for k, v in d.items() if k not in _FIELD_WIRE_KEYS},
    )


def block_to_dict(b: Block) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    _put(d, "id", b.id)
    d["title"] = b.title
    d["fields"] = [field_to_dict(f) for f in b.fields]
    _put(d, "visibility", rule_to_dict(b.visibility))
    return d


def block_from_dict(d: Dict[str, Any]) -> Block:
    return Block(
        title=d["title"],
        fields=[field_from_dict(f) for f in d.get("fields", [])],
        id=d.get("id"),
        visibility=rule_from_dict(d.get("visibility")),
    )


def section_to_dict(s: Section) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    _put(d, "id", s.id)
    d["title"] = s.title
    d["blocks"] = [block_to_dict(b) for b in s.blocks]
    _put(d, "visibility", rule_to_dict(s.visibility))
    return d


def section_from_dict(d: Dict[str, Any]) -> Section:
    return Section(
        title=d["title"],
        blocks=[block_from_dict(b) for b in d.get("blocks", [])],
        id=d.get("id"),
        visibility=rule_from_dict(d.get("visibility")),
    )


def page_to_dict(p: Page) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    _put(d, "id", p.id)
    d["title"] = p.title
    d["sections"] = [section_to_dict(s) for s in p.sections]
    _put(d, "visibility", rule_to_dict(p.visibility))
    return d


def page_from_dict(d: Dict[str, Any]) -> Page:
    return Page(
        title=d["title"],
        sections=[section_from_dict(s) for s in d.get("sections", [])],
        id=d.get("id"),
        visibility=rule_from_dict(d.get("visibility")),
    )


def survey_to_dict(s: Survey) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    _put(d, "id", s.id)
    d["title"] = s.title
    d["pages"] = [page_to_dict(p) for p in s.pages]
    return d


def survey_from_dict(d: Dict[str, Any]) -> Survey:
    s = Survey(title=d.get("title", ""), id=d.get("id"))
    s.pages = [page_from_dict(p) for p in d.get("pages", [])]
    return s


def survey_to_json(s: Survey, indent: int | None = None) -> str:
    return json.dumps(survey_to_dict(s), sort_keys=True, indent=indent, ensure_ascii=False)


def survey_from_json(s: str) -> Survey:
    d = json.loads(s)
    return survey_from_dict(d)


def survey_to_yaml(s: Survey) -> str:
    return yaml.safe_dump(survey_to_dict(s), allow_unicode=True, sort_keys=False)


def survey_from_yaml(s: str) -> Survey:
    d = yaml.safe_load(s)
    return survey_from_dict(d)
