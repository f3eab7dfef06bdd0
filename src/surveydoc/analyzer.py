"""
Document Analyzer: early diagnostics and inventory of survey documents.

This module provides lightweight analysis of Survey objects:
    - Node inventory per level
    - Duplicate titles (ambiguous for title-based merging)
    - Duplicate field names inside a block
    - Visibility rules reading fields that do not exist
    - Unknown field types and unknown rule operators
    - Missing or duplicated node ids

IMPORTANT: This is read-only. It does NOT modify the survey.
It only produces reports.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from surveydoc.model import FIELD_TYPES, Survey
from surveydoc.merge import normalize_key
from surveydoc.rules import VisibilityRule


@dataclass
class RuleMetrics:
    """Metrics about the visibility rules of a document."""
    rule_count: int = 0
    condition_count: int = 0
    field_references: Set[str] = field(default_factory=set)
    unknown_operators: Set[str] = field(default_factory=set)
    conditions_without_field: int = 0

    def add(self, rule: Optional[VisibilityRule]) -> None:
        if rule is None:
            return
        self.rule_count += 1
        for cond in rule.conditions:
            self.condition_count += 1
            if cond.field_name:
                self.field_references.add(cond.field_name)
            else:
                self.conditions_without_field += 1
            if not cond.is_known_operator:
                self.unknown_operators.add(str(cond.operator))


def _duplicates(keys: Iterable[str]) -> List[str]:
    counts = Counter(k for k in keys if k)
    return sorted(k for k, n in counts.items() if n > 1)


@dataclass
class DocumentReport:
    """Comprehensive analysis report for a survey document."""

    survey_title: str
    total_pages: int = 0
    total_sections: int = 0
    total_blocks: int = 0
    total_fields: int = 0

    # Field inventory
    field_types: Dict[str, int] = field(default_factory=dict)
    unknown_field_types: Set[str] = field(default_factory=set)
    required_fields: int = 0

    # Merge ambiguity: level path -> duplicated normalized titles
    duplicate_titles: Dict[str, List[str]] = field(default_factory=dict)
    # block path -> duplicated normalized field names
    duplicate_field_names: Dict[str, List[str]] = field(default_factory=dict)

    # Rules
    rules: RuleMetrics = field(default_factory=RuleMetrics)
    dangling_references: Set[str] = field(default_factory=set)

    # Identity
    nodes_without_id: int = 0
    duplicate_ids: List[str] = field(default_factory=list)

    # Warnings and flags
    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_survey(survey: Survey) -> DocumentReport:
    """
    Perform read-only analysis of a Survey.

    Returns a DocumentReport with counts and warnings.
    """
    report = DocumentReport(survey_title=survey.title)
    ids: List[str] = []
    field_names: Set[str] = set()

    def track_id(node_id: Optional[str]) -> None:
        if node_id:
            ids.append(node_id)
        else:
            report.nodes_without_id += 1

    # =========================================================================
    # 1. INVENTORY AND IDENTITY
    # =========================================================================

    page_titles = [normalize_key(p.title) for p in survey.pages]
    if _duplicates(page_titles):
        report.duplicate_titles["pages"] = _duplicates(page_titles)

    for pi, page in enumerate(survey.pages):
        report.total_pages += 1
        track_id(page.id)
        report.rules.add(page.visibility)

        section_titles = [normalize_key(s.title) for s in page.sections]
        if _duplicates(section_titles):
            report.duplicate_titles[f"pages[{pi}].sections"] = _duplicates(section_titles)

        for si, section in enumerate(page.sections):
            report.total_sections += 1
            track_id(section.id)
            report.rules.add(section.visibility)

            block_titles = [normalize_key(b.title) for b in section.blocks]
            if _duplicates(block_titles):
                report.duplicate_titles[f"pages[{pi}].sections[{si}].blocks"] = _duplicates(block_titles)

            for bi, block in enumerate(section.blocks):
                report.total_blocks += 1
                track_id(block.id)
                report.rules.add(block.visibility)

                names = [normalize_key(f.name) for f in block.fields]
                if _duplicates(names):
                    path = f"pages[{pi}].sections[{si}].blocks[{bi}]"
                    report.duplicate_field_names[path] = _duplicates(names)

                for f in block.fields:
                    report.total_fields += 1
                    track_id(f.id)
                    report.rules.add(f.visibility)
                    report.field_types[f.type] = report.field_types.get(f.type, 0) + 1
                    if f.type not in FIELD_TYPES:
                        report.unknown_field_types.add(f.type)
                    if f.required:
                        report.required_fields += 1
                    if f.key:
                        field_names.add(f.key)

    report.duplicate_ids = _duplicates(ids)

    # =========================================================================
    # 2. RULE REFERENCES
    # =========================================================================

    report.dangling_references = report.rules.field_references - field_names

    # =========================================================================
    # 3. WARNING FLAGS
    # =========================================================================

    for path, titles in report.duplicate_titles.items():
        report.add_warning(f"Duplicate titles at {path}: {', '.join(titles)} (merge matches the first)")

    for path, names in report.duplicate_field_names.items():
        report.add_warning(f"Duplicate field names in {path}: {', '.join(names)}")

    if report.duplicate_ids:
        report.add_warning(f"Duplicate ids: {', '.join(report.duplicate_ids)}")

    if report.nodes_without_id:
        report.add_warning(f"Nodes without id: {report.nodes_without_id}")

    if report.unknown_field_types:
        report.add_warning(f"Unknown field types: {', '.join(sorted(report.unknown_field_types))}")

    if report.dangling_references:
        report.add_warning(
            f"Rules reference unknown fields: {', '.join(sorted(report.dangling_references))}"
        )

    if report.rules.conditions_without_field:
        report.add_warning(f"Rule conditions without a field: {report.rules.conditions_without_field}")

    if report.rules.unknown_operators:
        report.add_warning(
            f"Unknown rule operators (always false): {', '.join(sorted(report.rules.unknown_operators))}"
        )

    return report
