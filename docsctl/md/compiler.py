"""Edit compiler: turns assembled blocks into positional document edits.

Offsets are absolute Docs API indices counted in UTF-16 code units. Blocks
are compiled in document order against a running cursor; each block inserts
its text first and then styles the ranges it just created, so an insertion
never lands before a range that a later op still refers to.
"""

from __future__ import annotations

from dataclasses import dataclass

from docsctl.md.blocks import Block, Heading, ListBlock, Paragraph, RuleMarker, Table
from docsctl.md.inline import InlineSpan, plain_text
from docsctl.util import (
    CHECKBOX_STYLES,
    InvalidIndex,
    MalformedTable,
    UnsupportedBlock,
    UsageError,
    utf16_len,
)

MIN_INDEX = 1

DIVIDER = "—" * 27 + "\n"

BULLET_PRESETS = {
    "bullet": "BULLET_DISC_CIRCLE_SQUARE",
    "numbered": "NUMBERED_DECIMAL_ALPHA_ROMAN",
    "checkbox": "BULLET_CHECKBOX",
}


@dataclass(frozen=True)
class InsertText:
    at: int
    text: str


@dataclass(frozen=True)
class SetParagraphStyle:
    start: int
    end: int
    heading_level: int


@dataclass(frozen=True)
class SetTextStyle:
    start: int
    end: int
    bold: bool = False
    italic: bool = False
    code: bool = False
    strikethrough: bool = False
    dim: bool = False


@dataclass(frozen=True)
class InsertTable:
    at: int
    rows: int
    cols: int


@dataclass(frozen=True)
class PopulateCell:
    table_start: int
    cols: int
    row: int
    col: int
    text: str

    @property
    def index(self) -> int:
        return cell_index(self.table_start, self.cols, self.row, self.col)


@dataclass(frozen=True)
class CreateBullets:
    start: int
    end: int
    preset: str


EditOp = (
    InsertText | SetParagraphStyle | SetTextStyle | InsertTable
    | PopulateCell | CreateBullets
)


@dataclass(frozen=True)
class CompileOptions:
    """checkbox_style: "strikethrough" marks checked items, "native" does not."""

    checkbox_style: str = "strikethrough"


def cell_index(table_start: int, cols: int, row: int, col: int) -> int:
    """Index of the empty paragraph in cell (row, col) of a fresh table.

    insertTable at ``table_start`` adds a newline, then the table start,
    then per row a row marker followed by two indices per cell (cell
    marker and its empty paragraph).
    """
    return table_start + 4 + row * (2 * cols + 1) + 2 * col


def table_size(rows: int, cols: int) -> int:
    """Indices occupied by an empty rows x cols table, leading newline included."""
    return 3 + rows * (2 * cols + 1)


def validate(blocks: list[Block], start_index: int, max_index: int | None = None) -> None:
    """Raise a CompileError if the blocks cannot be compiled at start_index."""
    if isinstance(start_index, bool) or not isinstance(start_index, int):
        raise InvalidIndex(f"index must be an integer, got {start_index!r}")
    if start_index < MIN_INDEX:
        raise InvalidIndex(
            f"index {start_index} is below the first content index ({MIN_INDEX})"
        )
    if max_index is not None and start_index > max_index:
        raise InvalidIndex(
            f"index {start_index} is beyond the end of the document ({max_index})"
        )

    for n, block in enumerate(blocks):
        if isinstance(block, Table):
            if not block.rows or not block.rows[0]:
                raise MalformedTable(f"table {n + 1} has no rows or columns")
            if block.separator_cols and block.separator_cols != len(block.rows[0]):
                raise MalformedTable(
                    f"table {n + 1}: header has {len(block.rows[0])} columns "
                    f"but separator has {block.separator_cols}"
                )
            width = len(block.rows[0])
            for r, row in enumerate(block.rows[1:], start=2):
                if len(row) > width:
                    raise MalformedTable(
                        f"table {n + 1}: row {r} has {len(row)} cells "
                        f"but header has {width}"
                    )
        elif not isinstance(block, (Heading, ListBlock, Paragraph, RuleMarker)):
            raise UnsupportedBlock(f"unsupported block: {type(block).__name__}")


class _Compiler:
    """Holds the cursor and op list for a single compile call."""

    def __init__(self, start_index: int, options: CompileOptions):
        self.cursor = start_index
        self.options = options
        self.ops: list[EditOp] = []

    def insert(self, text: str) -> int:
        """Insert text at the cursor, advance, and return the old cursor."""
        at = self.cursor
        self.ops.append(InsertText(at=at, text=text))
        self.cursor += utf16_len(text)
        return at

    def style_spans(self, spans: list[InlineSpan], start: int) -> None:
        offset = start
        for span in spans:
            length = utf16_len(span.text)
            if not span.is_plain and length:
                self.ops.append(SetTextStyle(
                    start=offset, end=offset + length,
                    bold=span.bold, italic=span.italic, code=span.code,
                ))
            offset += length

    def heading(self, block: Heading) -> None:
        text = plain_text(block.spans)
        start = self.insert(text + "\n")
        end = start + max(utf16_len(text), 1)
        self.ops.append(SetParagraphStyle(
            start=start, end=end, heading_level=block.level,
        ))
        self.style_spans(block.spans, start)

    def paragraph(self, block: Paragraph) -> None:
        start = self.insert(plain_text(block.spans) + "\n")
        self.style_spans(block.spans, start)

    def list_block(self, block: ListBlock) -> None:
        list_start = self.cursor
        strike_checked = (
            block.kind == "checkbox"
            and self.options.checkbox_style == "strikethrough"
        )
        for item in block.items:
            text = plain_text(item.spans)
            start = self.insert(text + "\n")
            self.style_spans(item.spans, start)
            if strike_checked and item.checked and text:
                self.ops.append(SetTextStyle(
                    start=start, end=start + utf16_len(text),
                    strikethrough=True, dim=True,
                ))
        self.ops.append(CreateBullets(
            start=list_start, end=self.cursor,
            preset=BULLET_PRESETS[block.kind],
        ))

    def table(self, block: Table) -> None:
        table_start = self.cursor
        num_rows = len(block.rows)
        num_cols = len(block.rows[0])
        self.ops.append(InsertTable(at=table_start, rows=num_rows, cols=num_cols))

        cells: list[tuple[int, int, list[InlineSpan], str]] = []
        for r, row in enumerate(block.rows):
            for c in range(num_cols):
                spans = row[c] if c < len(row) else []
                text = plain_text(spans)
                if text:
                    cells.append((r, c, spans, text))

        # Last cell first, so each cell's empty-grid index is still valid
        for r, c, _spans, text in reversed(cells):
            self.ops.append(PopulateCell(
                table_start=table_start, cols=num_cols, row=r, col=c, text=text,
            ))

        # Once populated, each cell is shifted by the text of all cells before it
        shift = 0
        for r, c, spans, text in cells:
            self.style_spans(spans, cell_index(table_start, num_cols, r, c) + shift)
            shift += utf16_len(text)

        self.cursor = table_start + table_size(num_rows, num_cols) + shift
        self.insert("\n")

    def rule(self, block: RuleMarker) -> None:
        self.insert(DIVIDER)


def compile_blocks(
    blocks: list[Block],
    start_index: int,
    *,
    max_index: int | None = None,
    options: CompileOptions | None = None,
) -> list[EditOp]:
    """Compile blocks into an ordered list of edit ops starting at start_index.

    All validation happens before the first op is built, so a failure
    never yields a partial list.
    """
    options = options or CompileOptions()
    if options.checkbox_style not in CHECKBOX_STYLES:
        raise UsageError(f"unknown checkbox style: {options.checkbox_style}")
    validate(blocks, start_index, max_index)

    compiler = _Compiler(start_index, options)
    for block in blocks:
        if isinstance(block, Heading):
            compiler.heading(block)
        elif isinstance(block, Paragraph):
            compiler.paragraph(block)
        elif isinstance(block, ListBlock):
            compiler.list_block(block)
        elif isinstance(block, Table):
            compiler.table(block)
        elif isinstance(block, RuleMarker):
            compiler.rule(block)
    return compiler.ops
