"""
Schema Normalizer (Layer 2: raw structured data -> canonical Survey).

Walks whatever JSON value the repair step produced and builds a Survey
tree, substituting defaults for anything missing or malformed. It never
raises: structural problems are silently defaulted.

Canonicalization:
    - survey may be wrapped as {"survey": {...}} or {"surveys": [{...}]}
    - missing pages/sections/blocks/fields become empty lists,
      a single object where a list is expected becomes a one-item list
    - type aliases: multiselect -> select (+multiple), phone -> tel,
      radiogroup -> radio, dropdown -> select, map/location/latlng/... -> geo
    - options become ordered {value, label} pairs
    - colSpan is clamped to [1, 12]; non-numeric colSpan is dropped
    - missing names are derived from labels (unique within the block)

Node ids are kept when present and never generated here; a normalized
document fed back in normalizes to the same tree. Ids are assigned on
merge insertion (surveydoc.merge) or explicitly (surveydoc.ids.ensure_ids).
"""
from __future__ import annotations

import logging
import math
import uuid
from typing import Any, Dict, List, Optional, Set, Tuple

from surveydoc.config import get_settings
from surveydoc.model import (
    CHOICE_TYPES,
    GRID_COLUMNS,
    Block,
    Field,
    Option,
    Page,
    Section,
    Survey,
    TableColumn,
)
from surveydoc.rules import Condition, RuleLogic, RuleMode, VisibilityRule, parse_operator
from surveydoc.serialization import survey_to_dict
from surveydoc.slugs import slugify, unique_slug


logger = logging.getLogger(__name__)

TYPE_ALIASES: Dict[str, str] = {
    "multiselect": "select",
    "multi_select": "select",
    "phone": "tel",
    "telephone": "tel",
    "radiogroup": "radio",
    "radio_group": "radio",
    "dropdown": "select",
}

GEO_ALIASES = frozenset({
    "map",
    "geo",
    "geolocation",
    "geo_location",
    "geoloc",
    "geopoint",
    "geo_point",
    "coordinate",
    "coordinates",
    "latlng",
    "lat_lng",
    "latlon",
    "lat_lon",
    "location",
    "location_picker",
    "coordinate_picker",
    "map_picker",
})

MULTI_ALIASES = frozenset({"multiselect", "multi_select"})

# Keys consumed into typed Field attributes; everything else goes to extras.
_FIELD_KEYS = frozenset({
    "type", "name", "label", "id", "required", "multiple", "colSpan",
    "options", "columns", "rows", "visibility", "placeholder", "tooltip",
    "min", "max", "step", "pattern", "tabIndex", "value",
})


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if value is None or value == "" or value is False:
        return []
    return [value]


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def _tiny_id() -> str:
    return uuid.uuid4().hex[:6]


def canonical_field_type(raw_type: Any) -> Tuple[str, bool]:
    """
    Map a raw type tag to its canonical form.

    Returns:
        (type, implies_multiple) - implies_multiple is True for
        multiselect aliases

    Examples:
        "Dropdown"    -> ("select", False)
        "multiselect" -> ("select", True)
        "Lat-Lng"     -> ("geo", False)
        ""            -> ("text", False)
    """
    t = str(raw_type).strip().lower() if raw_type is not None else ""
    if not t:
        return "text", False
    key = t.replace("-", "_").replace(" ", "_")
    if key in GEO_ALIASES:
        return "geo", False
    if key in TYPE_ALIASES:
        return TYPE_ALIASES[key], key in MULTI_ALIASES
    return t, False


def clamp_col_span(raw: Any) -> Optional[int]:
    """Clamp a numeric colSpan to [1, 12]; anything else becomes None."""
    n = _number(raw)
    if n is None:
        return None
    return int(min(GRID_COLUMNS, max(1, round(n))))


def normalize_options(raw: Any) -> Optional[List[Option]]:
    """
    Normalize an option list to ordered value/label pairs.

    - "Yes"                       -> Option("Yes", "Yes")
    - {"value": "y"}              -> Option("y", "y")
    - {"label": "Yes"}            -> Option("Yes", "Yes")
    - {"value": "y", "label": ""} -> Option("y", "")
    - None entries and objects with neither key are skipped

    Returns None when raw is None (no options given at all).
    """
    if raw is None:
        return None
    out: List[Option] = []
    for item in _as_list(raw):
        if item is None:
            continue
        if isinstance(item, dict):
            value = item.get("value")
            label = item.get("label")
            if value is None:
                value = label
            if label is None:
                label = value
            if value is None:
                continue
            out.append(Option(value=_text(value), label=_text(label)))
        else:
            s = _text(item)
            out.append(Option(value=s, label=s))
    return out


def normalize_rule(raw: Any) -> Optional[VisibilityRule]:
    """
    Build a VisibilityRule from its wire form; malformed input gives None.

    Unknown mode/logic values fall back to show/all. Conditions without a
    field name are kept with an empty name (they read an empty value), and
    unknown operators are kept as raw strings. Non-object conditions are
    dropped.
    """
    if isinstance(raw, VisibilityRule):
        return raw
    if not isinstance(raw, dict):
        return None
    try:
        mode = RuleMode(str(raw.get("mode", "show")).strip().lower())
    except ValueError:
        mode = RuleMode.SHOW
    try:
        logic = RuleLogic(str(raw.get("logic", "all")).strip().lower())
    except ValueError:
        logic = RuleLogic.ALL

    conditions = []
    for c in _as_list(raw.get("conditions")):
        if not isinstance(c, dict):
            continue
        field_name = c.get("fieldName", c.get("field_name", c.get("field")))
        field_name = "" if field_name is None or not str(field_name).strip() else str(field_name)
        value = c.get("value")
        conditions.append(Condition(
            field_name=field_name,
            operator=parse_operator(c.get("operator")),
            value=None if value is None else _text(value),
        ))
    return VisibilityRule(mode=mode, logic=logic, conditions=tuple(conditions))


def _normalize_column(raw: Any, index: int) -> TableColumn:
    c = _as_dict(raw)
    if not c and isinstance(raw, str):
        c = {"label": raw}
    col_type, _ = canonical_field_type(c.get("type"))
    key = _text(c.get("key")) or _text(c.get("name")) or slugify(_text(c.get("label"))) or f"c_{index}"
    label = _text(c.get("label"))
    col = TableColumn(
        key=key,
        label=label if label is not None else key,
        type=col_type,
        id=_text(c.get("id")),
        required=bool(c.get("required")),
    )
    if col_type == "number":
        col.min = _number(c.get("min"))
        col.max = _number(c.get("max"))
    if col_type in CHOICE_TYPES:
        col.options = normalize_options(c.get("options")) or []
    col.width_pct = _number(c.get("widthPct", c.get("width_pct")))
    return col


def _normalize_rows(raw: Any) -> Optional[List[Dict[str, Any]]]:
    if not isinstance(raw, list):
        return None
    rows = []
    for i, r in enumerate(raw):
        row = dict(r) if isinstance(r, dict) else {"value": r}
        if "__rowid" not in row:
            row_id = row.get("id", row.get("key"))
            row["__rowid"] = _text(row_id) if row_id is not None else f"r_{i}"
        rows.append(row)
    return rows


def normalize_field(raw: Any, taken_names: Optional[Set[str]] = None) -> Field:
    """
    Normalize one raw field.

    Args:
        raw: Raw field object (anything; non-dicts become empty text fields)
        taken_names: Names already used in the block. A derived name is
            made unique against it, and the final name is added to it.
    """
    f = _as_dict(raw)
    field_type, implies_multiple = canonical_field_type(f.get("type"))
    taken = taken_names if taken_names is not None else set()

    label = _text(f.get("label"))
    name = _text(f.get("name"))
    if name is None or not name.strip():
        derived = slugify(label)
        name = unique_slug(derived, taken) if derived else f"fld_{_tiny_id()}"
    taken.add(name)

    field = Field(
        type=field_type,
        name=name,
        label=label if label is not None else name,
        id=_text(f.get("id")),
        required=bool(f.get("required")),
        multiple=bool(f.get("multiple")) or implies_multiple,
        col_span=clamp_col_span(f.get("colSpan")),
        visibility=normalize_rule(f.get("visibility")),
        placeholder=_text(f.get("placeholder")),
        tooltip=_text(f.get("tooltip")),
        min=_number(f.get("min")),
        max=_number(f.get("max")),
        step=_number(f.get("step")),
        pattern=_text(f.get("pattern")),
        value=f.get("value"),
        extras={k: v for k, v in f.items() if k not in _FIELD_KEYS},
    )
    tab_index = _number(f.get("tabIndex"))
    field.tab_index = int(tab_index) if tab_index is not None else None

    options = normalize_options(f.get("options"))
    if field_type in CHOICE_TYPES:
        field.options = options or []
    elif options:
        field.options = options

    if field_type == "table":
        field.columns = [_normalize_column(c, i) for i, c in enumerate(_as_list(f.get("columns")))]
        field.rows = _normalize_rows(f.get("rows"))
    return field


def _explicit_names(raw_fields: List[Any]) -> Set[str]:
    names = set()
    for f in raw_fields:
        name = _text(f.get("name")) if isinstance(f, dict) else None
        if name and name.strip():
            names.add(name)
    return names


def normalize_block(raw: Any) -> Block:
    b = _as_dict(raw)
    raw_fields = _as_list(b.get("fields"))
    # Reserve explicit names first so derived names never collide with them.
    taken = _explicit_names(raw_fields)
    fields = [normalize_field(f, taken) for f in raw_fields]
    return Block(
        title=_text(b.get("title")) or get_settings().default_block_title,
        fields=fields,
        id=_text(b.get("id")),
        visibility=normalize_rule(b.get("visibility")),
    )


def normalize_section(raw: Any) -> Section:
    s = _as_dict(raw)
    return Section(
        title=_text(s.get("title")) or get_settings().default_section_title,
        blocks=[normalize_block(b) for b in _as_list(s.get("blocks"))],
        id=_text(s.get("id")),
        visibility=normalize_rule(s.get("visibility")),
    )


def normalize_page(raw: Any) -> Page:
    p = _as_dict(raw)
    return Page(
        title=_text(p.get("title")) or get_settings().default_page_title,
        sections=[normalize_section(s) for s in _as_list(p.get("sections"))],
        id=_text(p.get("id")),
        visibility=normalize_rule(p.get("visibility")),
    )


def _unwrap(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, Survey):
        return survey_to_dict(raw)
    if isinstance(raw, list):
        raw = raw[0] if raw else {}
    doc = _as_dict(raw)
    if isinstance(doc.get("survey"), dict):
        return doc["survey"]
    surveys = doc.get("surveys")
    if isinstance(surveys, list) and surveys and isinstance(surveys[0], dict):
        return surveys[0]
    return doc


def normalize_survey(raw: Any) -> Survey:
    """
    Canonicalize raw structured data into a Survey.

    Always succeeds. Non-object input yields an empty survey with the
    default title. A Survey is normalized through its wire form, so
    normalizing twice gives the same tree.

    Args:
        raw: Parsed JSON value (dict, list, or anything else) or a Survey

    Returns:
        Survey tree
    """
    settings = get_settings()
    doc = _unwrap(raw)
    pages_raw = doc.get("pages")
    if pages_raw is None:
        pages_raw = doc.get("page")
    survey = Survey(
        title=_text(doc.get("title")) or settings.default_survey_title,
        pages=[normalize_page(p) for p in _as_list(pages_raw)],
        id=_text(doc.get("id")),
    )
    logger.debug("Normalized survey %r with %d pages", survey.title, len(survey.pages))
    return survey
