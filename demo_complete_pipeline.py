#!/usr/bin/env python3
"""
Complete Pipeline Demo: model text -> repair -> normalize -> merge -> analysis -> visibility

Shows the full workflow:
1. Repair and normalize a raw model response
2. Integrate it into a persisted base document
3. Analyze the merged document
4. Evaluate visibility rules against live values
"""

from surveydoc.analyzer import analyze_survey
from surveydoc.errors import RepairError
from surveydoc.examples import EXAMPLE_MODEL_OUTPUT, build_example_base_survey
from surveydoc.logging_setup import configure_logging
from surveydoc.pipeline import ApplyMode, synthesize
from surveydoc.serialization import survey_to_yaml
from surveydoc.visibility import visible_node_ids


def main():
    configure_logging()
    base = build_example_base_survey()

    print("=" * 80)
    print("COMPLETE PIPELINE DEMO: model text -> Survey -> merge -> analysis")
    print("=" * 80)

    # =========================================================================
    # STEP 1 + 2: Repair, normalize, integrate
    # =========================================================================
    print("\n1. SYNTHESIZING AND MERGING...")
    merged = synthesize(EXAMPLE_MODEL_OUTPUT, base=base, mode=ApplyMode.INTEGRATE)
    print(f"   ✓ Survey: {merged.title}")
    print(f"   ✓ Pages: {[p.title for p in merged.pages]}")
    for page, section, block in merged.iter_blocks():
        print(f"     - {page.title} / {section.title} / {block.title}: {[f.name for f in block.fields]}")

    # =========================================================================
    # STEP 3: Analyze
    # =========================================================================
    print("\n2. ANALYZING DOCUMENT...")
    report = analyze_survey(merged)
    print(f"   ✓ Fields: {report.total_fields} ({report.required_fields} required)")
    print(f"   ✓ Field types: {report.field_types}")
    for warning in report.warnings:
        print(f"      - {warning}")

    # =========================================================================
    # STEP 4: Visibility
    # =========================================================================
    print("\n3. EVALUATING VISIBILITY...")
    for checked in (False, True):
        visible = visible_node_ids(merged, {"has_backup": checked})
        print(f"   has_backup={checked}: backup_capacity visible = {'field_base0004' in visible}")

    # =========================================================================
    # STEP 5: Failure path
    # =========================================================================
    print("\n4. INVALID INPUT...")
    try:
        synthesize("not json at all")
    except RepairError as e:
        print(f"   ✓ {e.code}: preview={e.preview!r}")

    print("\n5. RESULT (YAML)...")
    print(survey_to_yaml(merged))


if __name__ == "__main__":
    main()
