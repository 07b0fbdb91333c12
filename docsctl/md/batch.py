"""Batch emitter: serializes edit ops into a Docs API batchUpdate body."""

from __future__ import annotations

from docsctl.md.compiler import (
    CreateBullets,
    EditOp,
    InsertTable,
    InsertText,
    PopulateCell,
    SetParagraphStyle,
    SetTextStyle,
)

CODE_FONT = "Courier New"
CODE_BACKGROUND = {"red": 0.95, "green": 0.95, "blue": 0.95}
DIM_FOREGROUND = {"red": 0.6, "green": 0.6, "blue": 0.6}


def _range(start: int, end: int) -> dict:
    return {"startIndex": start, "endIndex": end}


def _text_style(op: SetTextStyle) -> tuple[dict, str]:
    """Build the textStyle dict and its fields mask for an op."""
    style: dict = {}
    if op.bold:
        style["bold"] = True
    if op.italic:
        style["italic"] = True
    if op.strikethrough:
        style["strikethrough"] = True
    if op.code:
        style["weightedFontFamily"] = {"fontFamily": CODE_FONT}
        style["backgroundColor"] = {"color": {"rgbColor": CODE_BACKGROUND}}
    if op.dim:
        style["foregroundColor"] = {"color": {"rgbColor": DIM_FOREGROUND}}
    return style, ",".join(style)


def to_request(op: EditOp) -> dict:
    """Map one edit op to its batchUpdate request dict."""
    if isinstance(op, InsertText):
        return {
            "insertText": {
                "location": {"index": op.at},
                "text": op.text,
            }
        }
    if isinstance(op, SetParagraphStyle):
        return {
            "updateParagraphStyle": {
                "range": _range(op.start, op.end),
                "paragraphStyle": {
                    "namedStyleType": f"HEADING_{op.heading_level}",
                },
                "fields": "namedStyleType",
            }
        }
    if isinstance(op, SetTextStyle):
        style, fields = _text_style(op)
        return {
            "updateTextStyle": {
                "range": _range(op.start, op.end),
                "textStyle": style,
                "fields": fields,
            }
        }
    if isinstance(op, InsertTable):
        return {
            "insertTable": {
                "rows": op.rows,
                "columns": op.cols,
                "location": {"index": op.at},
            }
        }
    if isinstance(op, PopulateCell):
        return {
            "insertText": {
                "location": {"index": op.index},
                "text": op.text,
            }
        }
    if isinstance(op, CreateBullets):
        return {
            "createParagraphBullets": {
                "range": _range(op.start, op.end),
                "bulletPreset": op.preset,
            }
        }
    raise TypeError(f"unknown edit op: {type(op).__name__}")


def emit(ops: list[EditOp], revision_id: str | None = None) -> dict:
    """Serialize ops, in order, into one batchUpdate request body."""
    body: dict = {"requests": [to_request(op) for op in ops]}
    if revision_id:
        body["writeControl"] = {"requiredRevisionId": revision_id}
    return body
