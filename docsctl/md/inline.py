"""Inline span tokenizer for **bold**, *italic* and `code` markers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class InlineSpan:
    """A run of text sharing one set of inline style flags."""

    text: str
    bold: bool = False
    italic: bool = False
    code: bool = False

    @property
    def is_plain(self) -> bool:
        return not (self.bold or self.italic or self.code)


def _skip_code(text: str, i: int) -> int:
    """Index just past a backtick span opening at i, or i if unmatched."""
    end = text.find("`", i + 1)
    return end + 1 if end != -1 else i


def _find_close(text: str, marker: str, start: int) -> int:
    """Index of the next marker at or after start outside code, or -1."""
    i = start
    while i < len(text):
        if text[i] == "`":
            skipped = _skip_code(text, i)
            if skipped != i:
                i = skipped
                continue
        if text.startswith(marker, i):
            return i
        i += 1
    return -1


def _find_italic_close(text: str, start: int) -> int:
    """Index of the next lone '*' at or after start, or -1.

    A '*' that belongs to a '**' pair never closes italic, and backtick
    code is skipped over.
    """
    i = start
    while i < len(text):
        ch = text[i]
        if ch == "`":
            skipped = _skip_code(text, i)
            if skipped != i:
                i = skipped
                continue
        if ch == "*":
            if text.startswith("**", i):
                i += 2
                while i < len(text) and text[i] == "*":
                    i += 1
                continue
            return i
        i += 1
    return -1


def _split_triple(
    text: str, pos: int, bold: bool, italic: bool,
) -> tuple[list[InlineSpan], int] | None:
    """Read an unpaired '***' at pos as '*' + '**' or '**' + '*'.

    Whichever of bold or italic closes first is the inner style. Returns
    the spans and the position after the outer close, or None.
    """
    inner = pos + 3
    bold_end = _find_close(text, "**", inner)
    italic_end = _find_italic_close(text, inner)

    if bold_end > inner and (italic_end == -1 or bold_end < italic_end):
        end = _find_italic_close(text, bold_end + 2)
        if end != -1:
            return tokenize(text[pos + 1:end], bold=bold, italic=True), end + 1
    elif italic_end > inner:
        end = _find_close(text, "**", italic_end + 1)
        if end != -1:
            return tokenize(text[pos + 2:end], bold=True, italic=italic), end + 2
    return None


def tokenize(text: str, *, bold: bool = False, italic: bool = False) -> list[InlineSpan]:
    """Split text into styled spans, scanning left to right.

    ``bold`` and ``italic`` are the flags inherited from enclosing markers.
    Markers without a closing partner are kept as literal text.
    """
    spans: list[InlineSpan] = []
    literal: list[str] = []

    def flush() -> None:
        if literal:
            spans.append(InlineSpan("".join(literal), bold=bold, italic=italic))
            literal.clear()

    pos = 0
    while pos < len(text):
        # Code: highest precedence, contents never re-scanned
        if text[pos] == "`":
            end = text.find("`", pos + 1)
            if end > pos + 1:
                flush()
                spans.append(InlineSpan(
                    text[pos + 1:end], bold=bold, italic=italic, code=True,
                ))
                pos = end + 1
                continue

        elif text.startswith("***", pos):
            end = _find_close(text, "***", pos + 3)
            if end > pos + 3:
                flush()
                spans.extend(tokenize(text[pos + 3:end], bold=True, italic=True))
                pos = end + 3
                continue
            split = _split_triple(text, pos, bold, italic)
            if split is not None:
                flush()
                nested, pos = split
                spans.extend(nested)
                continue

        elif text.startswith("**", pos):
            end = _find_close(text, "**", pos + 2)
            if end > pos + 2:
                flush()
                spans.extend(tokenize(text[pos + 2:end], bold=True, italic=italic))
                pos = end + 2
                continue
            # Unterminated: keep both stars literal
            literal.append("**")
            pos += 2
            continue

        elif text[pos] == "*":
            end = _find_italic_close(text, pos + 1)
            if end > pos + 1:
                flush()
                spans.extend(tokenize(text[pos + 1:end], bold=bold, italic=True))
                pos = end + 1
                continue

        literal.append(text[pos])
        pos += 1

    flush()
    return spans


def plain_text(spans: list[InlineSpan]) -> str:
    """Concatenated text of the spans, markers removed."""
    return "".join(s.text for s in spans)
