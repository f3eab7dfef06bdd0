"""
Tree Merge Engine.

Combines an incoming document (generated or imported) into an existing
base document without destroying what the user already built.

Matching is by soft identity, level by level:
    - Page, Section, Block: normalized title (trimmed, case-insensitive)
    - Field: normalized name

A matched container is merged recursively; a matched field is skipped
(fields are atomic). Anything unmatched is appended after the existing
siblings with fresh ids on it and all of its descendants.

KNOWN AMBIGUITY:
    Titles are not unique keys. When a level holds several children with
    the same normalized title, the first one in list order receives the
    incoming content. Empty titles never match anything. Only children
    that existed before the merge are matched: two incoming siblings with
    the same title are both inserted.

Neither input is mutated.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Set, TypeVar

from surveydoc.ids import (
    BLOCK_PREFIX,
    COLUMN_PREFIX,
    FIELD_PREFIX,
    PAGE_PREFIX,
    SECTION_PREFIX,
    collect_ids,
    new_id,
)
from surveydoc.model import GRID_COLUMNS, Block, Field, Page, Section, Survey


logger = logging.getLogger(__name__)

T = TypeVar("T")


def normalize_key(text: Optional[str]) -> str:
    """Identity key used for matching: trimmed and lowercased."""
    return (text or "").strip().lower()


def _index_by(items: Sequence[T], key: Callable[[T], str]) -> Dict[str, int]:
    # First occurrence wins for duplicate keys.
    index: Dict[str, int] = {}
    for i, item in enumerate(items):
        k = key(item)
        if k and k not in index:
            index[k] = i
    return index


def _title_key(node) -> str:
    return normalize_key(node.title)


def _field_key(f: Field) -> str:
    return normalize_key(f.name or f.id)


@dataclass
class MergeStats:
    """Counts of what a merge did; logged at debug level."""

    pages_added: int = 0
    sections_added: int = 0
    blocks_added: int = 0
    fields_added: int = 0
    fields_skipped: int = 0


class _Merger:
    """Holds the id registry and counters for one merge call."""

    def __init__(self, taken: Set[str]):
        self.taken = taken
        self.stats = MergeStats()

    # ------------------------------------------------------------------
    # Fresh-id copies of inserted subtrees
    # ------------------------------------------------------------------

    def fresh_field(self, f: Field) -> Field:
        out = copy.deepcopy(f)
        out.id = new_id(FIELD_PREFIX, self.taken)
        if out.col_span is None:
            out.col_span = GRID_COLUMNS
        for col in out.columns or []:
            col.id = new_id(COLUMN_PREFIX, self.taken)
        self.stats.fields_added += 1
        return out

    def fresh_block(self, b: Block) -> Block:
        out = Block(
            title=b.title,
            id=new_id(BLOCK_PREFIX, self.taken),
            visibility=b.visibility,
        )
        out.fields = [self.fresh_field(f) for f in b.fields]
        self.stats.blocks_added += 1
        return out

    def fresh_section(self, s: Section) -> Section:
        out = Section(
            title=s.title,
            id=new_id(SECTION_PREFIX, self.taken),
            visibility=s.visibility,
        )
        out.blocks = [self.fresh_block(b) for b in s.blocks]
        self.stats.sections_added += 1
        return out

    def fresh_page(self, p: Page) -> Page:
        out = Page(
            title=p.title,
            id=new_id(PAGE_PREFIX, self.taken),
            visibility=p.visibility,
        )
        out.sections = [self.fresh_section(s) for s in p.sections]
        self.stats.pages_added += 1
        return out

    # ------------------------------------------------------------------
    # Level merges (dst is a private copy and is modified in place)
    # ------------------------------------------------------------------

    def merge_children(
        self,
        dst: List[T],
        incoming: Sequence[T],
        merge_into: Callable[[T, T], None],
        fresh: Callable[[T], T],
    ) -> None:
        index = _index_by(dst, _title_key)
        for child in incoming:
            k = _title_key(child)
            if k and k in index:
                merge_into(dst[index[k]], child)
            else:
                dst.append(fresh(child))

    def merge_page(self, dst: Page, src: Page) -> None:
        self.merge_children(dst.sections, src.sections, self.merge_section, self.fresh_section)

    def merge_section(self, dst: Section, src: Section) -> None:
        self.merge_children(dst.blocks, src.blocks, self.merge_block, self.fresh_block)

    def merge_block(self, dst: Block, src: Block) -> None:
        names = {_field_key(f) for f in dst.fields}
        names.discard("")
        for f in src.fields:
            k = _field_key(f)
            if k and k in names:
                self.stats.fields_skipped += 1
                continue
            dst.fields.append(self.fresh_field(f))
            if k:
                names.add(k)


def merge_surveys(base: Survey, incoming: Survey) -> Survey:
    """
    Merge incoming into a copy of base.

    Args:
        base: Persisted document (never modified)
        incoming: Generated or imported document (never modified)

    Returns:
        New Survey. Existing nodes keep their ids, order and attributes;
        unmatched incoming nodes are appended with fresh ids, and fields
        without a colSpan get 12.

    An incoming document without pages is a no-op: a deep copy of base
    is returned.
    """
    out = copy.deepcopy(base)
    if incoming is None or not incoming.pages:
        logger.debug("Merge no-op: incoming document has no pages")
        return out

    merger = _Merger(collect_ids(out))
    merger.merge_children(out.pages, incoming.pages, merger.merge_page, merger.fresh_page)
    logger.debug("Merged %r into %r: %s", incoming.title, out.title, merger.stats)
    return out


def append_survey(base: Survey, incoming: Survey) -> Survey:
    """
    Append every incoming page to a copy of base without any matching.

    Same-titled pages end up side by side. All inserted nodes get fresh ids.
    """
    out = copy.deepcopy(base)
    if incoming is None or not incoming.pages:
        return out
    merger = _Merger(collect_ids(out))
    out.pages.extend(merger.fresh_page(p) for p in incoming.pages)
    logger.debug("Appended %d pages to %r", len(incoming.pages), out.title)
    return out
