"""
Example documents used by the demo script and the tests.

Provides:
    - a typical raw model response (commentary, fence, smart quotes,
      comments, trailing commas)
    - a small persisted base document with ids, layout and rules
"""

from surveydoc.model import Block, Field, Option, Page, Section, Survey
from surveydoc.rules import Condition, ConditionOperator, RuleLogic, RuleMode, VisibilityRule


EXAMPLE_MODEL_OUTPUT = """Sure! Here is the survey you asked for:

```json
{
  "title": "Facility Inspection",
  "pages": [
    {
      "title": "General",
      "sections": [
        {
          "title": "Master data",
          "blocks": [
            {
              "title": "Facility",
              "fields": [
                // identity of the facility
                {"type": "text", "name": "facility_name", "label": "Facility name", "required": true, "colSpan": 12},
                {"type": "dropdown", "label": “Facility type”, "options": ["Waterworks", "Pumping station", "Reservoir"]},
                {"type": "phone", "label": "Emergency phone", "colSpan": 6},
                {"type": "email", "name": "contact_email", "label": "E-mail", "colSpan": 6},
              ]
            }
          ]
        }
      ]
    },
    {
      "title": "Location",
      "sections": [
        {
          "title": "Position",
          "blocks": [
            {"title": "Coordinates", "fields": [{"type": "map", "label": "Site position", "colSpan": 20}]}
          ]
        }
      ]
    }
  ]
}
```

Let me know if you need changes!"""


def build_example_base_survey() -> Survey:
    """
    Build a persisted document as the editor would hold it.

    Structure:
        General / Master data / Facility
            facility_name (text), operator (text), has_backup (checkbox),
            backup_capacity (number, shown only when has_backup is checked)
    """
    backup_rule = VisibilityRule(
        mode=RuleMode.SHOW,
        logic=RuleLogic.ALL,
        conditions=(Condition("has_backup", ConditionOperator.IS_CHECKED),),
    )
    facility = Block(
        id="block_base0001",
        title="Facility",
        fields=[
            Field(id="field_base0001", type="text", name="facility_name",
                  label="Name of the facility", required=True, col_span=8),
            Field(id="field_base0002", type="text", name="operator", label="Operator", col_span=4),
            Field(id="field_base0003", type="checkbox", name="has_backup", label="Backup power available"),
            Field(id="field_base0004", type="number", name="backup_capacity", label="Backup capacity (kW)",
                  min=0, visibility=backup_rule),
        ],
    )
    status = Block(
        id="block_base0002",
        title="Status",
        fields=[
            Field(id="field_base0005", type="select", name="status", label="Status",
                  options=[Option("active", "Active"), Option("inactive", "Inactive")]),
        ],
    )
    return Survey(
        title="Facility Inspection",
        pages=[
            Page(
                id="page_base0001",
                title="general",
                sections=[
                    Section(id="section_base0001", title="Master Data", blocks=[facility, status]),
                ],
            )
        ],
    )
