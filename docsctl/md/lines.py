"""Line classifier: tags each Markdown line with its block kind."""

from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SourceLine:
    """One input line and its zero-based line number."""

    number: int
    text: str


@dataclass(frozen=True)
class HeadingLine:
    level: int
    text: str


@dataclass(frozen=True)
class BulletLine:
    text: str


@dataclass(frozen=True)
class NumberedLine:
    text: str


@dataclass(frozen=True)
class CheckboxLine:
    text: str
    checked: bool


@dataclass(frozen=True)
class TableRowLine:
    cells: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TableSeparatorLine:
    cells: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RuleLine:
    pass


@dataclass(frozen=True)
class ParagraphLine:
    text: str


@dataclass(frozen=True)
class BlankLine:
    pass


LineKind = (
    HeadingLine | BulletLine | NumberedLine | CheckboxLine | TableRowLine
    | TableSeparatorLine | RuleLine | ParagraphLine | BlankLine
)

_HEADING_RE = re.compile(r"^(#{1,3})\s+(.*)$")
_CHECKBOX_RE = re.compile(r"^[-*]\s+\[([ xX])\]\s+(.*)$")
_BULLET_RE = re.compile(r"^[-*]\s+(.*)$")
_NUMBERED_RE = re.compile(r"^\d+\.\s+(.*)$")
_TABLE_RE = re.compile(r"^\s*\|.*\|\s*$")
_RULE_RE = re.compile(r"^-{3,}\s*$")
_SEPARATOR_CELL_RE = re.compile(r"^[-:\s]*$")
_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")


def split_lines(markdown: str) -> list[SourceLine]:
    """Split Markdown into numbered source lines."""
    text = markdown.replace("\r\n", "\n").replace("\r", "\n")
    return [SourceLine(number=i, text=line)
            for i, line in enumerate(text.split("\n"))]


def split_cells(line: str) -> list[str]:
    """Split a pipe-delimited table row into trimmed cells.

    The outer pipes are dropped and ``\\|`` is kept as a literal pipe.
    """
    inner = line.strip()[1:-1]
    return [cell.strip().replace("\\|", "|")
            for cell in _CELL_SPLIT_RE.split(inner)]


def _is_separator(cells: list[str]) -> bool:
    return (
        all(_SEPARATOR_CELL_RE.match(c) for c in cells)
        and any("-" in c for c in cells)
    )


def classify(line: SourceLine) -> LineKind:
    """Classify a single line. First matching rule wins."""
    text = line.text

    m = _HEADING_RE.match(text)
    if m:
        return HeadingLine(level=len(m.group(1)), text=m.group(2).strip())

    m = _CHECKBOX_RE.match(text)
    if m:
        return CheckboxLine(
            text=m.group(2).rstrip(), checked=m.group(1) in ("x", "X"),
        )

    m = _BULLET_RE.match(text)
    if m:
        return BulletLine(text=m.group(1).rstrip())

    m = _NUMBERED_RE.match(text)
    if m:
        return NumberedLine(text=m.group(1).rstrip())

    if _TABLE_RE.match(text):
        cells = split_cells(text)
        if _is_separator(cells):
            return TableSeparatorLine(cells=cells)
        return TableRowLine(cells=cells)

    if _RULE_RE.match(text):
        return RuleLine()

    if not text.strip():
        return BlankLine()

    return ParagraphLine(text=text.rstrip())
