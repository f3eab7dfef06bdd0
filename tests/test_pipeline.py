"""
End-to-end tests: raw model text -> Survey -> applied to a base document.
"""

import pytest
from surveydoc.errors import RepairError
from surveydoc.examples import EXAMPLE_MODEL_OUTPUT, build_example_base_survey
from surveydoc.pipeline import ApplyMode, apply_survey, parse_survey_text, synthesize
from surveydoc.model import Survey


class TestParseSurveyText:
    """Repair + normalize on a realistic model response."""

    def test_example_output(self):
        survey = parse_survey_text(EXAMPLE_MODEL_OUTPUT)
        assert survey.title == "Facility Inspection"
        assert [p.title for p in survey.pages] == ["General", "Location"]

        fields = survey.pages[0].sections[0].blocks[0].fields
        assert [f.name for f in fields] == [
            "facility_name", "facility_type", "emergency_phone", "contact_email",
        ]
        assert [f.type for f in fields] == ["text", "select", "tel", "email"]
        assert [o.value for o in fields[1].options] == ["Waterworks", "Pumping station", "Reservoir"]
        assert fields[1].label == "Facility type"

    def test_geo_alias_and_clamp(self):
        survey = parse_survey_text(EXAMPLE_MODEL_OUTPUT)
        geo = survey.pages[1].sections[0].blocks[0].fields[0]
        assert geo.type == "geo"
        assert geo.col_span == 12

    def test_no_ids_before_apply(self):
        survey = parse_survey_text(EXAMPLE_MODEL_OUTPUT)
        assert survey.pages[0].id is None


class TestSynthesize:

    def test_replace_without_base(self):
        survey = synthesize(EXAMPLE_MODEL_OUTPUT)
        assert len(survey.pages) == 2

    def test_replace_ignores_base(self):
        survey = synthesize(EXAMPLE_MODEL_OUTPUT, build_example_base_survey(), ApplyMode.REPLACE)
        assert [p.title for p in survey.pages] == ["General", "Location"]

    def test_integrate_into_base(self):
        base = build_example_base_survey()
        survey = synthesize(EXAMPLE_MODEL_OUTPUT, base, "integrate")

        assert [p.title for p in survey.pages] == ["general", "Location"]
        assert survey.pages[0].id == "page_base0001"
        facility, status = survey.pages[0].sections[0].blocks
        assert [f.name for f in facility.fields] == [
            "facility_name", "operator", "has_backup", "backup_capacity",
            "facility_type", "emergency_phone", "contact_email",
        ]
        # Existing field is kept as it was
        assert facility.fields[0].label == "Name of the facility"
        assert facility.fields[0].col_span == 8
        # New fields carry ids and layout
        assert all(f.id for f in facility.fields)
        assert facility.fields[4].col_span == 12
        assert facility.fields[5].col_span == 6
        assert [f.name for f in status.fields] == ["status"]

    def test_integrate_keeps_base_untouched(self):
        base = build_example_base_survey()
        synthesize(EXAMPLE_MODEL_OUTPUT, base, ApplyMode.INTEGRATE)
        assert base == build_example_base_survey()

    def test_append(self):
        survey = synthesize(EXAMPLE_MODEL_OUTPUT, build_example_base_survey(), ApplyMode.APPEND)
        assert [p.title for p in survey.pages] == ["general", "General", "Location"]
        assert all(p.id for p in survey.pages)

    def test_integrate_twice_is_stable(self):
        once = synthesize(EXAMPLE_MODEL_OUTPUT, build_example_base_survey(), ApplyMode.INTEGRATE)
        twice = synthesize(EXAMPLE_MODEL_OUTPUT, once, ApplyMode.INTEGRATE)
        assert twice == once

    def test_empty_generation_is_noop(self):
        base = build_example_base_survey()
        assert synthesize('{"title": "Nothing", "pages": []}', base, ApplyMode.INTEGRATE) == base

    def test_invalid_input(self):
        with pytest.raises(RepairError) as exc:
            synthesize("I could not build that survey, sorry.")
        assert exc.value.code == "INVALID_INPUT"
        assert exc.value.preview.startswith("I could not")

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            synthesize(EXAMPLE_MODEL_OUTPUT, mode="overwrite")


def test_apply_without_base():
    incoming = Survey(title="x")
    assert apply_survey(incoming, None, ApplyMode.INTEGRATE) is incoming
