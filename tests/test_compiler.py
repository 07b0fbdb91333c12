"""Tests for compiling blocks into positional edit ops."""

import pytest

from docsctl.md import compile_markdown
from docsctl.md.blocks import Paragraph, Table
from docsctl.md.compiler import (
    DIVIDER,
    CompileOptions,
    CreateBullets,
    InsertTable,
    InsertText,
    PopulateCell,
    SetParagraphStyle,
    SetTextStyle,
    cell_index,
    compile_blocks,
    table_size,
)
from docsctl.md.inline import InlineSpan
from docsctl.util import (
    InvalidIndex,
    MalformedTable,
    UnsupportedBlock,
    UsageError,
    utf16_len,
)

SAMPLE = "# Title\n\nThis is **bold** and *italic*.\n\n- one\n- two"


class TestEndToEnd:
    def test_heading_paragraph_and_list(self):
        assert compile_markdown(SAMPLE, 1) == [
            InsertText(at=1, text="Title\n"),
            SetParagraphStyle(start=1, end=6, heading_level=1),
            InsertText(at=7, text="This is bold and italic.\n"),
            SetTextStyle(start=15, end=19, bold=True),
            SetTextStyle(start=24, end=30, italic=True),
            InsertText(at=32, text="one\n"),
            InsertText(at=36, text="two\n"),
            CreateBullets(start=32, end=40, preset="BULLET_DISC_CIRCLE_SQUARE"),
        ]

    def test_deterministic(self):
        assert compile_markdown(SAMPLE, 5) == compile_markdown(SAMPLE, 5)

    def test_start_index_shifts_every_offset(self):
        base = compile_markdown(SAMPLE, 1)
        shifted = compile_markdown(SAMPLE, 11)
        assert [op.at for op in shifted if isinstance(op, InsertText)] == [
            op.at + 10 for op in base if isinstance(op, InsertText)
        ]

    def test_inserts_are_contiguous(self):
        ops = compile_markdown(SAMPLE + "\n\n---\n\n## End", 1)
        cursor = 1
        for op in ops:
            if isinstance(op, InsertText):
                assert op.at == cursor
                cursor += utf16_len(op.text)

    def test_empty_markdown_yields_no_ops(self):
        assert compile_markdown("", 1) == []


class TestHeadings:
    def test_emoji_counts_two_units(self):
        ops = compile_markdown("# 😀 hi", 1)
        assert ops[0] == InsertText(at=1, text="😀 hi\n")
        assert ops[1] == SetParagraphStyle(start=1, end=6, heading_level=1)
        tail = compile_markdown("# 😀 hi\nx", 1)[-1]
        assert tail == InsertText(at=7, text="x\n")

    def test_inline_style_in_heading(self):
        ops = compile_markdown("## a **b**", 3)
        assert SetParagraphStyle(start=3, end=6, heading_level=2) in ops
        assert SetTextStyle(start=5, end=6, bold=True) in ops

    def test_code_span(self):
        ops = compile_markdown("run `ls` now", 1)
        assert ops[1] == SetTextStyle(start=5, end=7, code=True)


class TestLists:
    def test_numbered_preset(self):
        ops = compile_markdown("1. a\n2. b", 1)
        assert ops[-1] == CreateBullets(
            start=1, end=5, preset="NUMBERED_DECIMAL_ALPHA_ROMAN",
        )

    def test_checked_items_struck_by_default(self):
        assert compile_markdown("- [x] done\n- [ ] todo", 1) == [
            InsertText(at=1, text="done\n"),
            SetTextStyle(start=1, end=5, strikethrough=True, dim=True),
            InsertText(at=6, text="todo\n"),
            CreateBullets(start=1, end=11, preset="BULLET_CHECKBOX"),
        ]

    def test_native_checkbox_style_skips_strike(self):
        ops = compile_markdown(
            "- [x] done", 1, options=CompileOptions(checkbox_style="native"),
        )
        assert ops == [
            InsertText(at=1, text="done\n"),
            CreateBullets(start=1, end=6, preset="BULLET_CHECKBOX"),
        ]

    def test_unknown_checkbox_style(self):
        with pytest.raises(UsageError, match="emoji"):
            compile_markdown("- a", 1, options=CompileOptions(checkbox_style="emoji"))


class TestTables:
    def test_offsets(self):
        assert cell_index(1, 2, 0, 0) == 5
        assert cell_index(1, 2, 1, 1) == 12
        assert table_size(2, 2) == 13

    def test_cells_populated_last_to_first(self):
        ops = compile_markdown("| A | B |\n|---|---|\n| 1 | 2 |", 1)
        assert ops[0] == InsertTable(at=1, rows=2, cols=2)
        assert [(op.index, op.text) for op in ops[1:5]] == [
            (12, "2"), (10, "1"), (7, "B"), (5, "A"),
        ]
        assert all(isinstance(op, PopulateCell) for op in ops[1:5])
        assert ops[5] == InsertText(at=18, text="\n")

    def test_cell_style_accounts_for_earlier_cells(self):
        ops = compile_markdown("| A | **B** |\n|---|---|", 1)
        assert SetTextStyle(start=8, end=9, bold=True) in ops
        assert ops[-1] == InsertText(at=11, text="\n")

    def test_empty_cells_skipped(self):
        ops = compile_markdown("| A |  |\n|---|---|", 1)
        assert [op.text for op in ops if isinstance(op, PopulateCell)] == ["A"]
        assert ops[-1] == InsertText(at=1 + table_size(1, 2) + 1, text="\n")

    def test_separator_mismatch(self):
        with pytest.raises(MalformedTable):
            compile_markdown("| A | B |\n|---|", 1)

    def test_row_wider_than_header(self):
        with pytest.raises(MalformedTable, match="row 2 has 2 cells"):
            compile_markdown("| A |\n|---|\n| 1 | 2 |", 1)

    def test_short_row_padded(self):
        ops = compile_markdown("| A | B |\n|---|---|\n| 1 |", 1)
        assert [op.text for op in ops if isinstance(op, PopulateCell)] == [
            "1", "B", "A",
        ]

    def test_empty_table(self):
        with pytest.raises(MalformedTable):
            compile_blocks([Table(rows=[], separator_cols=0)], 1)


class TestRule:
    def test_divider_paragraph(self):
        ops = compile_markdown("---\nafter", 1)
        assert ops[0] == InsertText(at=1, text=DIVIDER)
        assert ops[1] == InsertText(at=1 + utf16_len(DIVIDER), text="after\n")


class TestValidation:
    @pytest.mark.parametrize("index", [0, -3])
    def test_index_below_first(self, index):
        with pytest.raises(InvalidIndex):
            compile_markdown("x", index)

    def test_index_beyond_end(self):
        with pytest.raises(InvalidIndex):
            compile_markdown("x", 50, max_index=10)

    def test_index_at_end_allowed(self):
        assert compile_markdown("x", 10, max_index=10)[0].at == 10

    def test_non_integer_index(self):
        with pytest.raises(InvalidIndex):
            compile_blocks([Paragraph(spans=[InlineSpan("x")])], True)

    def test_unknown_block(self):
        with pytest.raises(UnsupportedBlock):
            compile_blocks([object()], 1)

    def test_failure_before_any_op(self):
        blocks = [
            Paragraph(spans=[InlineSpan("ok")]),
            Table(rows=[[[InlineSpan("A")], [InlineSpan("B")]]], separator_cols=3),
        ]
        with pytest.raises(MalformedTable):
            compile_blocks(blocks, 1)
