"""
Stable node identifiers.

Ids look like "field_3f9a1c2b": a level prefix plus a random hex part.
They are assigned once (on direct creation, on merge insertion or when a
loaded document is missing them) and never change afterwards.
"""
from __future__ import annotations

import copy
import uuid
from typing import Optional, Set

from surveydoc.config import get_settings
from surveydoc.model import Survey


PAGE_PREFIX = "page"
SECTION_PREFIX = "section"
BLOCK_PREFIX = "block"
FIELD_PREFIX = "field"
COLUMN_PREFIX = "col"


def new_id(prefix: str = "id", taken: Optional[Set[str]] = None) -> str:
    """
    Generate a fresh identifier.

    Args:
        prefix: Level prefix, e.g. "page"
        taken: Ids already in use. The new id is guaranteed not to be
            in it and is added to it, so one set can be threaded through
            a whole batch of insertions.
    """
    length = get_settings().id_length
    while True:
        candidate = f"{prefix}_{uuid.uuid4().hex[:length]}"
        if taken is None:
            return candidate
        if candidate not in taken:
            taken.add(candidate)
            return candidate


def collect_ids(survey: Survey) -> Set[str]:
    """Every id present anywhere below the survey root (columns included)."""
    ids: Set[str] = set()
    for page in survey.pages:
        if page.id:
            ids.add(page.id)
        for section in page.sections:
            if section.id:
                ids.add(section.id)
            for block in section.blocks:
                if block.id:
                    ids.add(block.id)
                for f in block.fields:
                    if f.id:
                        ids.add(f.id)
                    for col in f.columns or []:
                        if col.id:
                            ids.add(col.id)
    return ids


def ensure_ids(survey: Survey) -> Survey:
    """
    Return a copy in which every id-less node has a fresh id.

    Existing ids are kept untouched. Used when a document is loaded into
    an editing session.
    """
    out = copy.deepcopy(survey)
    taken = collect_ids(out)
    for page in out.pages:
        page.id = page.id or new_id(PAGE_PREFIX, taken)
        for section in page.sections:
            section.id = section.id or new_id(SECTION_PREFIX, taken)
            for block in section.blocks:
                block.id = block.id or new_id(BLOCK_PREFIX, taken)
                for f in block.fields:
                    f.id = f.id or new_id(FIELD_PREFIX, taken)
                    for col in f.columns or []:
                        col.id = col.id or new_id(COLUMN_PREFIX, taken)
    return out
