"""
Structural edits on a caller-owned document.

The editor keeps one Survey per editing session and threads it through
these functions; each call returns a new Survey and leaves its input
untouched. Nodes are addressed by id, and ids never change on moves.

Deleting a node removes its whole subtree. Refusing to delete non-empty
containers is a UX policy, available through require_empty=True.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from surveydoc.errors import EditError, NodeNotEmptyError, NodeNotFoundError
from surveydoc.ids import (
    BLOCK_PREFIX,
    COLUMN_PREFIX,
    FIELD_PREFIX,
    PAGE_PREFIX,
    SECTION_PREFIX,
    collect_ids,
    new_id,
)
from surveydoc.model import GRID_COLUMNS, Block, Field, Page, Section, Survey, TableColumn
from surveydoc.normalizer import clamp_col_span
from surveydoc.slugs import unique_slug


logger = logging.getLogger(__name__)

PAGE = "page"
SECTION = "section"
BLOCK = "block"
FIELD = "field"


@dataclass
class NodeLocation:
    """
    Where a node sits in the tree.

    Properties:
        level: "page", "section", "block" or "field"
        path: Indices from the root, one per level down to the node
            (e.g. (0, 2) is the third section of the first page)
        node: The node object itself (inside the searched survey)
    """

    level: str
    path: tuple
    node: Any

    @property
    def index(self) -> int:
        return self.path[-1]

    @property
    def parent_path(self) -> tuple:
        return self.path[:-1]


def locate(survey: Survey, node_id: str) -> Optional[NodeLocation]:
    """
    Find a node by id.

    Returns:
        NodeLocation or None if no node carries the id
    """
    if not node_id:
        return None
    for pi, page in enumerate(survey.pages):
        if page.id == node_id:
            return NodeLocation(PAGE, (pi,), page)
        for si, section in enumerate(page.sections):
            if section.id == node_id:
                return NodeLocation(SECTION, (pi, si), section)
            for bi, block in enumerate(section.blocks):
                if block.id == node_id:
                    return NodeLocation(BLOCK, (pi, si, bi), block)
                for fi, f in enumerate(block.fields):
                    if f.id == node_id:
                        return NodeLocation(FIELD, (pi, si, bi, fi), f)
    return None


def _require(survey: Survey, node_id: str, level: Optional[str] = None) -> NodeLocation:
    loc = locate(survey, node_id)
    if loc is None:
        raise NodeNotFoundError(f"No node with id {node_id!r}")
    if level is not None and loc.level != level:
        raise EditError(f"Node {node_id!r} is a {loc.level}, expected a {level}")
    return loc


def _children(survey: Survey, parent_path: tuple) -> List[Any]:
    """The child list found at parent_path (root when empty)."""
    if not parent_path:
        return survey.pages
    page = survey.pages[parent_path[0]]
    if len(parent_path) == 1:
        return page.sections
    section = page.sections[parent_path[1]]
    if len(parent_path) == 2:
        return section.blocks
    return section.blocks[parent_path[2]].fields


# ----------------------------------------------------------------------
# Creation
# ----------------------------------------------------------------------


def add_page(survey: Survey, title: Optional[str] = None) -> Survey:
    """Append a new empty page. Default title: "Page <n>"."""
    out = copy.deepcopy(survey)
    taken = collect_ids(out)
    out.pages.append(Page(title=title or f"Page {len(out.pages) + 1}", id=new_id(PAGE_PREFIX, taken)))
    return out


def add_section(survey: Survey, page_id: str, title: str = "New section") -> Survey:
    out = copy.deepcopy(survey)
    page = _require(out, page_id, PAGE).node
    page.sections.append(Section(title=title, id=new_id(SECTION_PREFIX, collect_ids(out))))
    return out


def add_block(survey: Survey, section_id: str, title: str = "New block") -> Survey:
    out = copy.deepcopy(survey)
    section = _require(out, section_id, SECTION).node
    section.blocks.append(Block(title=title, id=new_id(BLOCK_PREFIX, collect_ids(out))))
    return out


def add_field(survey: Survey, block_id: str, field_type: str = "text") -> Survey:
    """
    Append a new field of the given type to a block.

    Defaults: label is the type in upper case, name is "<type>_<n>"
    (made unique in the block), colSpan 12. Table fields start with
    one text column.
    """
    out = copy.deepcopy(survey)
    block = _require(out, block_id, BLOCK).node
    taken = collect_ids(out)
    name = unique_slug(f"{field_type}_{len(block.fields) + 1}", [f.name for f in block.fields])
    f = Field(
        type=field_type,
        name=name,
        label=field_type.upper(),
        id=new_id(FIELD_PREFIX, taken),
        col_span=GRID_COLUMNS,
    )
    if field_type == "table":
        f.columns = [TableColumn(key="col0", label="Column 1", type="text", id=new_id(COLUMN_PREFIX, taken))]
    block.fields.append(f)
    return out


# ----------------------------------------------------------------------
# Mutation
# ----------------------------------------------------------------------

_PROTECTED = {"id", "pages", "sections", "blocks", "fields"}


def patch_node(survey: Survey, node_id: str, **changes: Any) -> Survey:
    """
    Set attributes on one node.

    Structure (ids and child lists) cannot be patched; use the add,
    remove and move operations for that. col_span is clamped to [1, 12].
    A field name must stay unique (case-insensitive) within its block.

    Raises:
        NodeNotFoundError: unknown id
        EditError: protected or unknown attribute, non-numeric col_span,
            field name already used in the block
    """
    out = copy.deepcopy(survey)
    loc = _require(out, node_id)
    node = loc.node
    for key, value in changes.items():
        if key in _PROTECTED or not hasattr(node, key):
            raise EditError(f"Cannot patch attribute {key!r} on {type(node).__name__}")
        if key == "col_span" and value is not None:
            clamped = clamp_col_span(value)
            if clamped is None:
                raise EditError(f"col_span must be a number, got {value!r}")
            value = clamped
        if key == "name" and loc.level == FIELD and value:
            siblings = _children(out, loc.parent_path)
            if any(f is not node and f.name and f.name.lower() == str(value).lower() for f in siblings):
                raise EditError(f"Field name {value!r} is already used in this block")
        setattr(node, key, value)
    return out


def remove_node(survey: Survey, node_id: str, require_empty: bool = False) -> Survey:
    """
    Remove a node and all of its descendants.

    Args:
        require_empty: Refuse (NodeNotEmptyError) when the node still has
            children. Fields never have children.
    """
    out = copy.deepcopy(survey)
    loc = _require(out, node_id)
    if require_empty and loc.level != FIELD:
        children = {PAGE: "sections", SECTION: "blocks", BLOCK: "fields"}[loc.level]
        if getattr(loc.node, children):
            raise NodeNotEmptyError(f"{loc.level.capitalize()} {node_id!r} still contains {children}")
    del _children(out, loc.parent_path)[loc.index]
    logger.debug("Removed %s %s", loc.level, node_id)
    return out


def move_node(survey: Survey, active_id: str, over_id: str) -> Survey:
    """
    Drag-and-drop move: put the active node where the over node is.

    Both nodes must be on the same level. Within one parent the list is
    reordered (the active node takes the over node's index); across
    parents the active node is inserted before the over node. Ids never
    change; a field moved into another block is renamed when its name is
    already taken there.
    """
    out = copy.deepcopy(survey)
    if active_id == over_id:
        return out
    active = _require(out, active_id)
    over = _require(out, over_id)
    if active.level != over.level:
        raise EditError(f"Cannot move a {active.level} onto a {over.level}")

    source = _children(out, active.parent_path)
    node = source.pop(active.index)
    if active.parent_path == over.parent_path:
        source.insert(over.index, node)
    else:
        target = _children(out, over.parent_path)
        if active.level == FIELD and node.name:
            renamed = unique_slug(node.name, [f.name for f in target if f.name])
            if renamed != node.name:
                logger.debug("Renamed moved field %s to %s", node.name, renamed)
                node.name = renamed
        target.insert(over.index, node)
    return out
