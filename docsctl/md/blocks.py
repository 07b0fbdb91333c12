"""Block assembler: groups classified lines into headings, lists, tables."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from docsctl.md.inline import InlineSpan, tokenize
from docsctl.md.lines import (
    BlankLine,
    BulletLine,
    CheckboxLine,
    HeadingLine,
    LineKind,
    NumberedLine,
    ParagraphLine,
    RuleLine,
    SourceLine,
    TableRowLine,
    TableSeparatorLine,
    classify,
    split_lines,
)
from docsctl.util import UnsupportedBlock


@dataclass
class Heading:
    level: int
    spans: list[InlineSpan] = field(default_factory=list)


@dataclass
class ListItem:
    spans: list[InlineSpan] = field(default_factory=list)
    checked: bool | None = None


@dataclass
class ListBlock:
    kind: str  # "bullet", "numbered", or "checkbox"
    items: list[ListItem] = field(default_factory=list)


@dataclass
class Table:
    """A pipe table. rows[0] is the header row; each cell is a span list."""

    rows: list[list[list[InlineSpan]]] = field(default_factory=list)
    separator_cols: int = 0


@dataclass
class RuleMarker:
    pass


@dataclass
class Paragraph:
    spans: list[InlineSpan] = field(default_factory=list)


Block = Heading | ListBlock | Table | RuleMarker | Paragraph

_LIST_KINDS = {
    BulletLine: "bullet",
    NumberedLine: "numbered",
    CheckboxLine: "checkbox",
}

_NESTED_ITEM_RE = re.compile(r"^\s+([-*]|\d+\.)\s+")


def assemble(classified: list[tuple[SourceLine, LineKind]]) -> list[Block]:
    """Group classified lines into blocks in a single forward pass."""
    blocks: list[Block] = []
    current_list: ListBlock | None = None
    i = 0

    while i < len(classified):
        line, kind = classified[i]

        list_kind = _LIST_KINDS.get(type(kind))
        if list_kind is not None:
            if current_list is None or current_list.kind != list_kind:
                current_list = ListBlock(kind=list_kind)
                blocks.append(current_list)
            checked = kind.checked if isinstance(kind, CheckboxLine) else None
            current_list.items.append(
                ListItem(spans=tokenize(kind.text), checked=checked)
            )
            i += 1
            continue

        if current_list is not None and _NESTED_ITEM_RE.match(line.text):
            raise UnsupportedBlock(
                f"nested lists are not supported (line {line.number + 1})"
            )
        current_list = None

        if isinstance(kind, HeadingLine):
            blocks.append(Heading(level=kind.level, spans=tokenize(kind.text)))
            i += 1
        elif isinstance(kind, TableRowLine):
            i = _assemble_table(classified, i, blocks)
        elif isinstance(kind, RuleLine):
            blocks.append(RuleMarker())
            i += 1
        elif isinstance(kind, BlankLine):
            i += 1
        elif isinstance(kind, ParagraphLine):
            blocks.append(Paragraph(spans=tokenize(kind.text)))
            i += 1
        else:
            # Lone separator with no header row
            blocks.append(Paragraph(spans=tokenize(line.text.strip())))
            i += 1

    return blocks


def _assemble_table(
    classified: list[tuple[SourceLine, LineKind]],
    i: int,
    blocks: list[Block],
) -> int:
    """Consume a table starting at i, or demote the row to a paragraph.

    Returns the index of the first unconsumed line.
    """
    line, header = classified[i]
    if i + 1 >= len(classified) or not isinstance(
        classified[i + 1][1], TableSeparatorLine
    ):
        blocks.append(Paragraph(spans=tokenize(line.text.strip())))
        return i + 1

    separator = classified[i + 1][1]
    rows = [[tokenize(cell) for cell in header.cells]]
    i += 2
    while i < len(classified) and isinstance(classified[i][1], TableRowLine):
        rows.append([tokenize(cell) for cell in classified[i][1].cells])
        i += 1

    blocks.append(Table(rows=rows, separator_cols=len(separator.cells)))
    return i


def parse_markdown(markdown: str) -> list[Block]:
    """Run classification and assembly over a Markdown string."""
    lines = split_lines(markdown)
    return assemble([(line, classify(line)) for line in lines])
