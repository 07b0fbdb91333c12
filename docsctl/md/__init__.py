"""Markdown to Google Docs batchUpdate compiler."""

from __future__ import annotations

from docsctl.md.batch import emit
from docsctl.md.blocks import parse_markdown
from docsctl.md.compiler import CompileOptions, EditOp, compile_blocks


def compile_markdown(
    markdown: str,
    start_index: int,
    *,
    max_index: int | None = None,
    options: CompileOptions | None = None,
) -> list[EditOp]:
    """Parse Markdown and compile it into edit ops at start_index."""
    blocks = parse_markdown(markdown)
    return compile_blocks(
        blocks, start_index, max_index=max_index, options=options,
    )


def markdown_to_batch(
    markdown: str,
    start_index: int,
    *,
    max_index: int | None = None,
    options: CompileOptions | None = None,
    revision_id: str | None = None,
) -> dict:
    """Compile Markdown straight to a batchUpdate request body."""
    ops = compile_markdown(
        markdown, start_index, max_index=max_index, options=options,
    )
    return emit(ops, revision_id=revision_id)


__all__ = ["CompileOptions", "compile_markdown", "markdown_to_batch"]
