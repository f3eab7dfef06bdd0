"""
Complete pipeline: raw model text -> repaired JSON -> Survey -> applied to base.

This is the single entry point an HTTP layer calls after a
text-generation request. It holds no state: the caller passes the
current document in and stores the returned one.

Modes:
    REPLACE   - the generated document replaces the base
    APPEND    - generated pages are appended to the base, unmatched
    INTEGRATE - generated content is merged into the base by title/name
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Union

from surveydoc.merge import append_survey, merge_surveys
from surveydoc.model import Survey
from surveydoc.normalizer import normalize_survey
from surveydoc.repair import repair_json


logger = logging.getLogger(__name__)


class ApplyMode(Enum):
    """How a generated document is combined with the current one."""
    REPLACE = "replace"
    APPEND = "append"
    INTEGRATE = "integrate"


def parse_survey_text(raw_text: str) -> Survey:
    """
    Repair and normalize raw text into a Survey.

    Raises:
        RepairError: if the text cannot be repaired into valid JSON
    """
    return normalize_survey(repair_json(raw_text))


def apply_survey(
    incoming: Survey,
    base: Optional[Survey] = None,
    mode: Union[ApplyMode, str] = ApplyMode.REPLACE,
) -> Survey:
    """
    Combine an already-normalized document with the base document.

    Without a base every mode degenerates to REPLACE.
    """
    mode = ApplyMode(mode)
    if base is None or mode is ApplyMode.REPLACE:
        return incoming
    if not incoming.pages:
        logger.debug("Generated document has no pages; keeping base %r", base.title)
    if mode is ApplyMode.APPEND:
        return append_survey(base, incoming)
    return merge_surveys(base, incoming)


def synthesize(
    raw_text: str,
    base: Optional[Survey] = None,
    mode: Union[ApplyMode, str] = ApplyMode.REPLACE,
) -> Survey:
    """
    Run repair -> normalize -> (replace | append | integrate).

    Args:
        raw_text: Model output
        base: The caller's current document, if any (never modified)
        mode: ApplyMode or its string value

    Returns:
        The resulting document

    Raises:
        RepairError: INVALID_INPUT, carrying a preview of raw_text.
            Callers re-run the whole pipeline rather than resume it.
        ValueError: unknown mode string
    """
    mode = ApplyMode(mode)
    incoming = parse_survey_text(raw_text)
    logger.info(
        "Synthesized %r: %d pages (mode=%s)", incoming.title, len(incoming.pages), mode.value
    )
    return apply_survey(incoming, base, mode)
