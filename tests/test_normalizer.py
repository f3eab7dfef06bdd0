"""
Tests for the schema normalizer (Layer 2: raw data -> canonical Survey).

The normalizer is total: every input yields a Survey. These tests cover
unwrapping, defaults, type aliases, names, layout, options, tables and
rules, plus idempotence on already-normalized documents.
"""

import pytest
from surveydoc.normalizer import (
    canonical_field_type,
    clamp_col_span,
    normalize_field,
    normalize_options,
    normalize_rule,
    normalize_survey,
)
from surveydoc.model import Option
from surveydoc.rules import ConditionOperator, RuleLogic, RuleMode
from surveydoc.serialization import survey_to_dict
from surveydoc.visibility import is_visible


def one_block(*fields):
    return {"title": "S", "pages": [{"title": "P", "sections": [{"title": "Sec", "blocks": [
        {"title": "B", "fields": list(fields)}
    ]}]}]}


def fields_of(survey):
    return survey.pages[0].sections[0].blocks[0].fields


class TestUnwrapAndDefaults:
    """Test document-level tolerance."""

    def test_plain_document(self):
        survey = normalize_survey({"title": "A", "pages": []})
        assert survey.title == "A"
        assert survey.pages == []

    def test_survey_wrapper(self):
        survey = normalize_survey({"survey": {"title": "Wrapped", "pages": [{"title": "P"}]}})
        assert survey.title == "Wrapped"
        assert survey.pages[0].title == "P"

    def test_surveys_list_takes_first(self):
        survey = normalize_survey({"surveys": [{"title": "First"}, {"title": "Second"}]})
        assert survey.title == "First"

    @pytest.mark.parametrize("raw", [None, 42, "text", [], {}])
    def test_garbage_yields_empty_survey(self, raw):
        survey = normalize_survey(raw)
        assert survey.title == "Survey"
        assert survey.pages == []

    def test_missing_lists_default_empty(self):
        survey = normalize_survey({"pages": [{"sections": [{"blocks": [{}]}]}]})
        page = survey.pages[0]
        assert page.title == "Page"
        assert page.sections[0].title == "Section"
        assert page.sections[0].blocks[0].title == "Block"
        assert page.sections[0].blocks[0].fields == []

    def test_single_object_where_list_expected(self):
        survey = normalize_survey({"pages": {"title": "Only", "sections": {"title": "S"}}})
        assert [p.title for p in survey.pages] == ["Only"]
        assert [s.title for s in survey.pages[0].sections] == ["S"]

    def test_singular_page_key(self):
        survey = normalize_survey({"page": [{"title": "P"}]})
        assert survey.pages[0].title == "P"

    def test_non_dict_children_become_defaults(self):
        survey = normalize_survey({"pages": ["oops", None]})
        assert [p.title for p in survey.pages] == ["Page", "Page"]

    def test_ids_kept_not_generated(self):
        survey = normalize_survey({"pages": [{"id": "page_1", "title": "A"}, {"title": "B"}]})
        assert survey.pages[0].id == "page_1"
        assert survey.pages[1].id is None


class TestFieldTypes:
    """Test type alias canonicalization."""

    @pytest.mark.parametrize("raw,expected", [
        ("multiselect", ("select", True)),
        ("phone", ("tel", False)),
        ("radiogroup", ("radio", False)),
        ("dropdown", ("select", False)),
        ("Dropdown", ("select", False)),
        ("map", ("geo", False)),
        ("geolocation", ("geo", False)),
        ("geopoint", ("geo", False)),
        ("coordinate", ("geo", False)),
        ("coordinates", ("geo", False)),
        ("latlng", ("geo", False)),
        ("Lat-Lng", ("geo", False)),
        ("location", ("geo", False)),
        ("location picker", ("geo", False)),
        ("textarea", ("textarea", False)),
        ("", ("text", False)),
        (None, ("text", False)),
    ])
    def test_aliases(self, raw, expected):
        assert canonical_field_type(raw) == expected

    def test_unknown_type_kept_lowercase(self):
        assert canonical_field_type("Signature") == ("signature", False)

    def test_multiselect_sets_multiple(self):
        f = normalize_field({"type": "multiselect", "name": "x", "options": ["a"]})
        assert f.type == "select"
        assert f.multiple is True

    def test_phone_becomes_tel(self):
        assert normalize_field({"type": "phone", "name": "p"}).type == "tel"


class TestNames:
    """Test machine-name derivation."""

    def test_explicit_name_kept(self):
        assert normalize_field({"name": "Custom Name", "label": "X"}).name == "Custom Name"

    def test_name_from_label(self):
        assert normalize_field({"label": "Straße und Nr."}).name == "strasse_und_nr"

    def test_random_name_when_nothing_usable(self):
        f = normalize_field({"label": "!!!"})
        assert f.name.startswith("fld_")
        assert f.label == "!!!"

    def test_label_defaults_to_name(self):
        assert normalize_field({"name": "zip"}).label == "zip"

    def test_blank_name_treated_as_missing(self):
        assert normalize_field({"name": "  ", "label": "City"}).name == "city"

    def test_derived_names_unique_in_block(self):
        survey = normalize_survey(one_block(
            {"label": "Phone"}, {"label": "Phone"}, {"label": "phone!"},
        ))
        assert [f.name for f in fields_of(survey)] == ["phone", "phone_2", "phone_3"]

    def test_derived_name_avoids_later_explicit_name(self):
        survey = normalize_survey(one_block({"label": "Email"}, {"name": "email"}))
        assert [f.name for f in fields_of(survey)] == ["email_2", "email"]

    def test_uniqueness_is_per_block(self):
        raw = {"pages": [{"sections": [{"blocks": [
            {"title": "A", "fields": [{"label": "Name"}]},
            {"title": "B", "fields": [{"label": "Name"}]},
        ]}]}]}
        blocks = normalize_survey(raw).pages[0].sections[0].blocks
        assert blocks[0].fields[0].name == "name"
        assert blocks[1].fields[0].name == "name"


class TestLayout:
    """Test colSpan clamping."""

    @pytest.mark.parametrize("raw,expected", [
        (6, 6),
        (0, 1),
        (-3, 1),
        (20, 12),
        (12, 12),
        (4.0, 4),
        ("6", None),
        (None, None),
        (True, None),
        (float("nan"), None),
    ])
    def test_clamp(self, raw, expected):
        assert clamp_col_span(raw) == expected

    def test_field_col_span_unset(self):
        assert normalize_field({"name": "a"}).col_span is None


class TestOptions:
    """Test option normalization."""

    def test_strings(self):
        assert normalize_options(["A", "B"]) == [Option("A", "A"), Option("B", "B")]

    def test_objects_fall_back(self):
        assert normalize_options([{"value": "y"}, {"label": "No"}]) == [
            Option("y", "y"), Option("No", "No"),
        ]

    def test_full_objects_kept(self):
        assert normalize_options([{"value": "1", "label": "One"}]) == [Option("1", "One")]

    def test_numbers_stringified(self):
        assert normalize_options([1, {"value": 2.0, "label": "Two"}]) == [
            Option("1", "1"), Option("2", "Two"),
        ]

    def test_unusable_entries_skipped(self):
        assert normalize_options([None, {}, "x"]) == [Option("x", "x")]

    def test_none(self):
        assert normalize_options(None) is None

    def test_select_without_options_gets_empty_list(self):
        assert normalize_field({"type": "select", "name": "s"}).options == []

    def test_order_preserved(self):
        opts = normalize_options(["c", "a", "b"])
        assert [o.value for o in opts] == ["c", "a", "b"]


class TestTables:
    """Test table column normalization."""

    def test_columns(self):
        f = normalize_field({
            "type": "table",
            "name": "items",
            "columns": [
                {"label": "Article No.", "type": "text"},
                {"key": "qty", "label": "Qty", "type": "number", "min": 0, "max": 99},
                {"name": "unit", "type": "dropdown", "options": ["pcs", "kg"]},
                {"type": "checkbox"},
            ],
        })
        cols = f.columns
        assert [c.key for c in cols] == ["article_no", "qty", "unit", "c_3"]
        assert cols[1].min == 0 and cols[1].max == 99
        assert cols[2].type == "select"
        assert [o.value for o in cols[2].options] == ["pcs", "kg"]
        assert cols[3].label == "c_3"
        assert all(c.id is None for c in cols)

    def test_string_column(self):
        f = normalize_field({"type": "table", "name": "t", "columns": ["Amount"]})
        assert f.columns[0].key == "amount"
        assert f.columns[0].label == "Amount"

    def test_rows_get_row_ids(self):
        f = normalize_field({"type": "table", "name": "t", "rows": [{"id": "r1", "a": 1}, {"b": 2}]})
        assert f.rows[0]["__rowid"] == "r1"
        assert f.rows[1]["__rowid"] == "r_1"

    def test_table_without_columns(self):
        assert normalize_field({"type": "table", "name": "t"}).columns == []


class TestRules:
    """Test visibility rule parsing."""

    def test_full_rule(self):
        rule = normalize_rule({
            "mode": "hide",
            "logic": "any",
            "conditions": [{"fieldName": "age", "operator": "gte", "value": 18}],
        })
        assert rule.mode is RuleMode.HIDE
        assert rule.logic is RuleLogic.ANY
        assert rule.conditions[0].field_name == "age"
        assert rule.conditions[0].operator is ConditionOperator.GREATER_EQUAL
        assert rule.conditions[0].value == "18"

    def test_defaults_for_bad_mode_and_logic(self):
        rule = normalize_rule({"mode": "sometimes", "logic": 3, "conditions": []})
        assert rule.mode is RuleMode.SHOW
        assert rule.logic is RuleLogic.ALL
        assert rule.is_empty

    def test_non_object_conditions_dropped(self):
        rule = normalize_rule({"conditions": [{"operator": "isEmpty"}, "junk", {"fieldName": "x", "operator": "isEmpty"}]})
        assert [c.field_name for c in rule.conditions] == ["", "x"]

    def test_condition_without_field_kept(self):
        """A freshly added, not yet filled-in condition still takes part."""
        rule = normalize_rule({
            "mode": "hide",
            "conditions": [{"fieldName": "  ", "operator": "equals", "value": ""}],
        })
        assert len(rule.conditions) == 1
        assert rule.conditions[0].field_name == ""
        assert is_visible(rule, {}) is False

    def test_unknown_operator_kept(self):
        rule = normalize_rule({"conditions": [{"fieldName": "x", "operator": "regex"}]})
        assert rule.conditions[0].operator == "regex"

    def test_non_dict_is_none(self):
        assert normalize_rule("show if x") is None
        assert normalize_rule(None) is None

    def test_rule_attached_to_nodes(self):
        raw = {"pages": [{"title": "P", "visibility": {"conditions": [{"fieldName": "a", "operator": "isChecked"}]}}]}
        assert normalize_survey(raw).pages[0].visibility.conditions[0].field_name == "a"


class TestFieldExtras:

    def test_unknown_keys_preserved(self):
        f = normalize_field({"name": "a", "style": {"fontWeight": "bold"}, "hint": "x"})
        assert f.extras == {"style": {"fontWeight": "bold"}, "hint": "x"}

    def test_typed_attributes(self):
        f = normalize_field({
            "name": "n", "type": "number", "min": 1, "max": 5, "step": 0.5,
            "placeholder": "e.g. 3", "tabIndex": 2, "required": "yes",
        })
        assert (f.min, f.max, f.step) == (1, 5, 0.5)
        assert f.placeholder == "e.g. 3"
        assert f.tab_index == 2
        assert f.required is True


class TestIdempotence:
    """normalize(normalize(d)) == normalize(d) once names are fixed."""

    def test_round_trip_through_wire_shape(self):
        raw = one_block(
            {"id": "f1", "type": "multiselect", "label": "Colors", "options": ["red", {"value": "g", "label": "Green"}]},
            {"id": "f2", "type": "phone", "label": "Phone", "colSpan": 30},
            {"id": "f3", "type": "table", "name": "t", "columns": [{"label": "Qty", "type": "number", "min": 0}],
             "rows": [{"qty": 1}]},
            {"id": "f4", "label": "Age", "type": "number",
             "visibility": {"mode": "hide", "conditions": [{"fieldName": "colors", "operator": "isEmpty"}]}},
            {"id": "f5", "label": "Extra", "style": {"border": True}},
        )
        once = normalize_survey(raw)
        twice = normalize_survey(survey_to_dict(once))
        assert twice == once

    def test_normalizing_a_survey_keeps_it(self):
        once = normalize_survey({"title": "T", "pages": [{"title": "P", "sections": [{"title": "S", "blocks": [
            {"title": "B", "fields": [{"label": "Age", "type": "number", "colSpan": 4}]},
        ]}]}]})
        twice = normalize_survey(once)
        assert twice == once
        assert twice is not once
        assert twice.title == "T"
        assert [f.name for _, _, _, f in twice.iter_fields()] == ["age"]
