"""Tests for TextBuilder and build_text (inline content to text + marks)."""

from __future__ import annotations

from docimport.converter.rich_text import TextBuilder, build_text, extract_text
from docimport.models import MarkType


class TestTextBuilder:
    def test_offsets_in_utf16_units(self):
        b = TextBuilder()
        b.append("\U0001f600")
        with b.mark(MarkType.BOLD):
            b.append("ab")
        text, marks = b.build()
        assert text == "\U0001f600ab"
        assert (marks[0].start, marks[0].end) == (2, 4)

    def test_empty_mark_dropped(self):
        b = TextBuilder()
        with b.mark(MarkType.ITALIC):
            b.append("")
        assert b.build() == ("", [])

    def test_nested_marks_sorted_outer_first(self):
        b = TextBuilder()
        with b.mark(MarkType.LINK, "https://x"):
            with b.mark(MarkType.BOLD):
                b.append("ab")
            b.append("c")
        _, marks = b.build()
        assert [m.type for m in marks] == [MarkType.LINK, MarkType.BOLD]
        assert marks[0].param == "https://x"


class TestBuildText:
    def test_tokens(self):
        tokens = [
            {"type": "text", "raw": "a"},
            {"type": "softbreak"},
            {"type": "strong", "children": [{"type": "text", "raw": "b"}]},
            {"type": "linebreak"},
            {"type": "image", "attrs": {"url": "x.png"}, "children": []},
        ]
        text, marks = build_text(tokens)
        assert text == "a b\nx.png"
        assert [(m.type, m.start, m.end) for m in marks] == [(MarkType.BOLD, 2, 3)]

    def test_unknown_token_skipped(self):
        assert build_text([{"type": "mystery", "raw": "x"}]) == ("", [])

    def test_extract_text(self):
        tokens = [{"type": "emphasis", "children": [{"type": "text", "raw": "hi"}]}, {"type": "codespan", "raw": "c"}]
        assert extract_text(tokens) == "hic"
