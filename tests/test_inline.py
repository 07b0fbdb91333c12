"""Tests for the inline span tokenizer."""

import pytest

from docsctl.md.inline import InlineSpan, plain_text, tokenize


class TestTokenize:
    def test_plain(self):
        assert tokenize("hello world") == [InlineSpan("hello world")]

    def test_empty(self):
        assert tokenize("") == []

    def test_bold_and_italic_sentence(self):
        assert tokenize("This is **bold** and *italic*.") == [
            InlineSpan("This is "),
            InlineSpan("bold", bold=True),
            InlineSpan(" and "),
            InlineSpan("italic", italic=True),
            InlineSpan("."),
        ]

    def test_bold_italic_triple(self):
        assert tokenize("***both***") == [
            InlineSpan("both", bold=True, italic=True),
        ]

    def test_italic_nested_in_bold(self):
        assert tokenize("**bold *both* bold**") == [
            InlineSpan("bold ", bold=True),
            InlineSpan("both", bold=True, italic=True),
            InlineSpan(" bold", bold=True),
        ]

    def test_bold_nested_in_italic(self):
        assert tokenize("*a **b** c*") == [
            InlineSpan("a ", italic=True),
            InlineSpan("b", bold=True, italic=True),
            InlineSpan(" c", italic=True),
        ]

    def test_code_contents_not_scanned(self):
        assert tokenize("`**not bold**`") == [
            InlineSpan("**not bold**", code=True),
        ]

    def test_code_inside_bold(self):
        assert tokenize("**run `make`**") == [
            InlineSpan("run ", bold=True),
            InlineSpan("make", bold=True, code=True),
        ]

    def test_stars_inside_code_do_not_close_bold(self):
        assert tokenize("**a `x**y` b**") == [
            InlineSpan("a ", bold=True),
            InlineSpan("x**y", bold=True, code=True),
            InlineSpan(" b", bold=True),
        ]

    def test_stars_inside_code_do_not_close_bold_italic(self):
        assert tokenize("***a `***` b***") == [
            InlineSpan("a ", bold=True, italic=True),
            InlineSpan("***", bold=True, italic=True, code=True),
            InlineSpan(" b", bold=True, italic=True),
        ]

    def test_triple_opening_bold_closes_first(self):
        assert tokenize("***a** b*") == [
            InlineSpan("a", bold=True, italic=True),
            InlineSpan(" b", italic=True),
        ]

    def test_triple_opening_italic_closes_first(self):
        assert tokenize("***a* b**") == [
            InlineSpan("a", bold=True, italic=True),
            InlineSpan(" b", bold=True),
        ]

    def test_adjacent_styles_not_merged(self):
        assert tokenize("**a***b*") == [
            InlineSpan("a", bold=True),
            InlineSpan("b", italic=True),
        ]


class TestUnterminatedMarkers:
    def test_unclosed_italic_is_literal(self):
        spans = tokenize("*italic without close")
        assert spans == [InlineSpan("*italic without close")]
        assert spans[0].italic is False

    def test_unclosed_bold_is_literal(self):
        assert tokenize("a ** b") == [InlineSpan("a ** b")]

    def test_unclosed_backtick_is_literal(self):
        assert tokenize("a`b") == [InlineSpan("a`b")]

    def test_empty_markers_are_literal(self):
        assert tokenize("``") == [InlineSpan("``")]
        assert tokenize("****") == [InlineSpan("****")]


@pytest.mark.parametrize("line, expected", [
    ("no markers", "no markers"),
    ("This is **bold** and *italic*.", "This is bold and italic."),
    ("`code` then *it*", "code then it"),
    ("*open only", "*open only"),
    ("mixed **b** *i* end", "mixed b i end"),
    ("emoji 😀 **bold**", "emoji 😀 bold"),
    ("**a `x**y` b**", "a x**y b"),
    ("***a** b*", "a b"),
])
def test_span_text_reconstructs_line(line, expected):
    assert plain_text(tokenize(line)) == expected


def test_is_plain():
    assert InlineSpan("x").is_plain
    assert not InlineSpan("x", code=True).is_plain
