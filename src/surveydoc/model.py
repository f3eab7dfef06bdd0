"""
Core Survey Document Objects

Defines the canonical document tree:

    Survey -> Page -> Section -> Block -> Field

These are plain data classes representing:
    - Options (value/label pairs of choice fields)
    - Table columns (nested schema of table-typed fields)
    - Fields (form inputs)
    - Blocks, Sections, Pages (titled containers)
    - Surveys (root container)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about rendering, HTTP or storage
        - Are mutated only on private copies (every engine operation
          returns a new tree)
        - Are fully serializable (see surveydoc.serialization)
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .rules import VisibilityRule


GRID_COLUMNS = 12

# Canonical field type tags produced by the normalizer.
FIELD_TYPES = frozenset({
    "text",
    "textarea",
    "number",
    "slider",
    "date",
    "datetime",
    "time",
    "checkbox",
    "radio",
    "select",
    "email",
    "tel",
    "geo",
    "file",
    "table",
})

CHOICE_TYPES = frozenset({"select", "radio"})


@dataclass
class Option:
    """
    One choice of a select/radio field.

    Properties:
        value: Stored machine value
        label: Human-readable text
    """

    value: str
    label: str


@dataclass
class TableColumn:
    """
    Column of a table-typed field.

    Columns are normalized like small fields: they carry a type tag,
    a machine key and optional choice options.

    Properties:
        key: Machine key of the column, unique inside its table
        label: Header text
        type: Column type tag (text, number, select, checkbox, radio, ...)
        id: Stable identifier (None until assigned)
        required: Whether a cell value is mandatory
        options: Choices for select/radio columns
        min, max: Bounds for number columns
        width_pct: Optional fixed width in percent
    """

    key: str
    label: str
    type: str = "text"
    id: Optional[str] = None
    required: bool = False
    options: Optional[List[Option]] = None
    min: Optional[float] = None
    max: Optional[float] = None
    width_pct: Optional[float] = None


@dataclass
class Field:
    """
    A single form input; the leaf node of the document tree.

    Properties:
        type:
            Canonical type tag, see FIELD_TYPES.
            Unknown tags are kept verbatim (the renderer decides).

        name:
            Stable machine key, unique within its Block.
            Example: "street", "house_number"

        label:
            Human-readable caption

        col_span:
            Layout weight on the 12-unit grid, clamped to [1, 12].
            None means "full width" (12).

        options:
            Ordered choices for select/radio fields

        columns / rows:
            Nested column schema and preset rows of table fields

        visibility:
            Optional show/hide rule

        extras:
            Any further keys found on the raw input, preserved untouched

    ARCHITECTURAL RULE:
        Fields are atomic during merges. They are matched by name
        and never merged attribute by attribute.
    """

    type: str = "text"
    name: str = ""
    label: str = ""
    id: Optional[str] = None
    required: bool = False
    multiple: bool = False
    col_span: Optional[int] = None
    options: Optional[List[Option]] = None
    columns: Optional[List[TableColumn]] = None
    rows: Optional[List[Dict[str, Any]]] = None
    visibility: Optional[VisibilityRule] = None
    placeholder: Optional[str] = None
    tooltip: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    pattern: Optional[str] = None
    tab_index: Optional[int] = None
    value: Any = None
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def effective_col_span(self) -> int:
        """Grid width actually used for layout (unset means full width)."""
        return GRID_COLUMNS if self.col_span is None else self.col_span

    @property
    def key(self) -> str:
        """Key used in value maps: the name, falling back to the id."""
        return self.name or self.id or ""


@dataclass
class Block:
    """
    Titled group of fields, typically one visual row group.

    Properties:
        title: Display title; also the merge identity of the block
        fields: Ordered fields
        id: Stable identifier (None until assigned)
        visibility: Optional show/hide rule
    """

    title: str
    fields: List[Field] = field(default_factory=list)
    id: Optional[str] = None
    visibility: Optional[VisibilityRule] = None

    def get_field(self, name: str) -> Optional[Field]:
        """
        Retrieve a field by machine name.

        Args:
            name: Field name

        Returns:
            Field object or None if not found
        """
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass
class Section:
    """Titled group of blocks within a page."""

    title: str
    blocks: List[Block] = field(default_factory=list)
    id: Optional[str] = None
    visibility: Optional[VisibilityRule] = None


@dataclass
class Page:
    """Titled group of sections; one step of a multi-page form."""

    title: str
    sections: List[Section] = field(default_factory=list)
    id: Optional[str] = None
    visibility: Optional[VisibilityRule] = None


@dataclass
class Survey:
    """
    Root container for the whole form definition.

    This is THE primary artifact. The editor, the persistence layer and
    the preview all consume this object.

    Properties:
        title:
            Survey title

        pages:
            Ordered pages

        id:
            Optional record identifier; opaque to the engine

    INVARIANTS:
        - Every node below Survey carries a stable id once assigned,
          and an id is never reused for a different logical node
        - Field names are unique within their Block
        - col_span is None or within [1, 12]
    """

    title: str
    pages: List[Page] = field(default_factory=list)
    id: Optional[str] = None

    def get_page(self, page_id: str) -> Optional[Page]:
        """
        Retrieve a page by id.

        Args:
            page_id: Page identifier

        Returns:
            Page object or None if not found
        """
        for page in self.pages:
            if page.id == page_id:
                return page
        return None

    def iter_sections(self) -> Iterator[Tuple[Page, Section]]:
        for page in self.pages:
            for section in page.sections:
                yield page, section

    def iter_blocks(self) -> Iterator[Tuple[Page, Section, Block]]:
        for page, section in self.iter_sections():
            for block in section.blocks:
                yield page, section, block

    def iter_fields(self) -> Iterator[Tuple[Page, Section, Block, Field]]:
        """Walk every field in document order, with its ancestors."""
        for page, section, block in self.iter_blocks():
            for f in block.fields:
                yield page, section, block, f

    @property
    def is_empty(self) -> bool:
        return len(self.pages) == 0
