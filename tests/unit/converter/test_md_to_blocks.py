"""Tests for the Markdown to blocks pipeline (mistune parse + block build)."""

from __future__ import annotations

from docimport.converter import MarkdownToBlocks
from docimport.converter.block_builder import BuildContext
from docimport.converter.tables import build_table
from docimport.models import (
    Div,
    File,
    FileType,
    Latex,
    MarkType,
    Table,
    TableRow,
    Text,
    TextStyle,
)


def convert(md: str):
    return MarkdownToBlocks().convert(md)


def texts(blocks):
    return [b.content for b in blocks if isinstance(b.content, Text)]


# ---------------------------------------------------------------------------
# Headings and paragraphs
# ---------------------------------------------------------------------------


class TestHeadings:
    def test_levels_clamp_to_header3(self):
        blocks = convert("# a\n\n## b\n\n### c\n\n#### d\n")
        assert [t.style for t in texts(blocks)] == [
            TextStyle.HEADER1, TextStyle.HEADER2, TextStyle.HEADER3, TextStyle.HEADER3,
        ]
        assert [t.text for t in texts(blocks)] == ["a", "b", "c", "d"]


class TestParagraphMarks:
    def test_inline_marks(self):
        md = "Some **bold** and *it* ~~del~~ `code` [link](https://x.y)\n"
        (para,) = texts(convert(md))
        assert para.style == TextStyle.PARAGRAPH
        assert para.text == "Some bold and it del code link"
        got = [(m.type, m.start, m.end, m.param) for m in para.marks]
        assert got == [
            (MarkType.BOLD, 5, 9, ""),
            (MarkType.ITALIC, 14, 16, ""),
            (MarkType.STRIKETHROUGH, 17, 20, ""),
            (MarkType.KEYBOARD, 21, 25, ""),
            (MarkType.LINK, 26, 30, "https://x.y"),
        ]

    def test_marks_count_utf16_units(self):
        (para,) = texts(convert("\U0001f600 **b**\n"))
        (mark,) = para.marks
        assert (mark.start, mark.end) == (3, 4)

    def test_single_image_paragraph_is_file_block(self):
        (block,) = convert("![alt text](images/a.png)\n")
        assert isinstance(block.content, File)
        assert block.content.type == FileType.IMAGE
        assert block.content.source == "images/a.png"
        assert block.content.name == "alt text"

    def test_raw_html_block_skipped(self):
        assert convert("<div>x</div>\n") == []


# ---------------------------------------------------------------------------
# Lists, quotes, code
# ---------------------------------------------------------------------------


class TestLists:
    def test_bullets_with_nested_child(self):
        blocks = convert("- a\n- b\n  - c\n")
        by_text = {b.content.text: b for b in blocks}
        assert by_text["a"].content.style == TextStyle.MARKED
        assert by_text["b"].children_ids == [by_text["c"].id]
        assert by_text["c"].content.style == TextStyle.MARKED

    def test_ordered(self):
        blocks = convert("1. one\n2. two\n")
        assert [t.style for t in texts(blocks)] == [TextStyle.NUMBERED, TextStyle.NUMBERED]

    def test_task_items(self):
        blocks = convert("- [x] done\n- [ ] todo\n")
        done, todo = texts(blocks)
        assert done.style == TextStyle.CHECKBOX and done.checked is True
        assert todo.style == TextStyle.CHECKBOX and todo.checked is False
        assert done.text == "done"


class TestOtherBlocks:
    def test_quote(self):
        (quote,) = texts(convert("> quoted\n"))
        assert quote.style == TextStyle.QUOTE
        assert quote.text == "quoted"

    def test_code_keeps_language(self):
        (code,) = texts(convert("```Python\nprint(1)\n```\n"))
        assert code.style == TextStyle.CODE
        assert code.language == "python"
        assert code.text == "print(1)"

    def test_divider(self):
        blocks = convert("a\n\n***\n")
        assert isinstance(blocks[-1].content, Div)

    def test_block_math(self):
        (block,) = convert("$$\nx^2\n$$\n")
        assert isinstance(block.content, Latex)
        assert block.content.text == "x^2"


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


class TestTables:
    def test_structure(self):
        blocks = convert("| a | b |\n|---|---|\n| 1 | 2 |\n")
        by_id = {b.id: b for b in blocks}
        (table,) = [b for b in blocks if isinstance(b.content, Table)]
        rows = [by_id[i] for i in table.children_ids]
        assert [r.content.is_header for r in rows] == [True, False]
        assert all(isinstance(r.content, TableRow) for r in rows)
        cells = [[by_id[c].content.text for c in r.children_ids] for r in rows]
        assert cells == [["a", "b"], ["1", "2"]]

    def test_short_row_padded(self):
        def cell(text):
            return {"type": "table_cell", "children": [{"type": "text", "raw": text}]}

        token = {"type": "table", "children": [
            {"type": "table_head", "children": [cell("a"), cell("b")]},
            {"type": "table_body", "children": [{"type": "table_row", "children": [cell("1")]}]},
        ]}
        ctx = BuildContext()
        table = build_table(token, ctx)
        by_id = {b.id: b for b in ctx.blocks}
        cells = [[by_id[c].content.text for c in by_id[r].children_ids] for r in table.children_ids]
        assert cells == [["a", "b"], ["1", ""]]

    def test_table_without_rows(self):
        assert build_table({"type": "table", "children": []}, BuildContext()) is None
