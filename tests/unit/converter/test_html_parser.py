"""Tests for the HTML to blocks converter."""

from __future__ import annotations

from docimport.converter import html_to_blocks
from docimport.models import Div, File, FileType, MarkType, Table, Text, TextStyle


def by_id(blocks):
    return {b.id: b for b in blocks}


def root_texts(blocks):
    referenced = {c for b in blocks for c in b.children_ids}
    return [b.content for b in blocks if b.id not in referenced and isinstance(b.content, Text)]


class TestTextBlocks:
    def test_heading_and_paragraph_marks(self):
        html = (
            "<html><head><title>T</title></head><body>"
            "<h1>Title</h1><p>Hello <b>bold</b> <a href=\"https://x.y\">link</a></p>"
            "</body></html>"
        )
        heading, para = root_texts(html_to_blocks(html))
        assert heading.style == TextStyle.HEADER1
        assert heading.text == "Title"
        assert para.text == "Hello bold link"
        got = [(m.type, m.start, m.end, m.param) for m in para.marks]
        assert got == [(MarkType.BOLD, 6, 10, ""), (MarkType.LINK, 11, 15, "https://x.y")]

    def test_deep_heading_clamped(self):
        (h,) = root_texts(html_to_blocks("<h5>deep</h5>"))
        assert h.style == TextStyle.HEADER3

    def test_bare_text_without_body(self):
        (para,) = root_texts(html_to_blocks("plain   text"))
        assert para.text == "plain text"

    def test_bytes_input(self):
        (para,) = root_texts(html_to_blocks("<p>café</p>".encode()))
        assert para.text == "café"

    def test_script_and_comments_ignored(self):
        blocks = html_to_blocks("<body><script>x()</script><!-- c --><p>ok</p></body>")
        assert [t.text for t in root_texts(blocks)] == ["ok"]


class TestStructure:
    def test_nested_list_and_checkbox(self):
        html = (
            "<ul><li>a<ul><li>b</li></ul></li>"
            "<li><input type=\"checkbox\" checked> done</li></ul>"
        )
        blocks = html_to_blocks(html)
        index = by_id(blocks)
        a, done = root_texts(blocks)
        assert a.style == TextStyle.MARKED and a.text == "a"
        a_block = next(b for b in blocks if b.content is a)
        (child_id,) = a_block.children_ids
        assert index[child_id].content.text == "b"
        assert done.style == TextStyle.CHECKBOX and done.checked is True
        assert done.text == "done"

    def test_ordered_list(self):
        (item,) = root_texts(html_to_blocks("<ol><li>one</li></ol>"))
        assert item.style == TextStyle.NUMBERED

    def test_quote_takes_first_paragraph(self):
        blocks = html_to_blocks("<blockquote><p>quoted</p></blockquote>")
        (quote,) = blocks
        assert quote.content.style == TextStyle.QUOTE
        assert quote.content.text == "quoted"
        assert quote.children_ids == []

    def test_details_is_toggle(self):
        blocks = html_to_blocks("<details><summary>More</summary><p>hidden</p></details>")
        index = by_id(blocks)
        (toggle,) = root_texts(blocks)
        assert toggle.style == TextStyle.TOGGLE and toggle.text == "More"
        toggle_block = next(b for b in blocks if b.content is toggle)
        assert [index[c].content.text for c in toggle_block.children_ids] == ["hidden"]

    def test_image_and_divider(self):
        blocks = html_to_blocks("<p><img src=\"a.png\" alt=\"A\"></p><hr>")
        image, divider = blocks
        assert isinstance(image.content, File)
        assert image.content.type == FileType.IMAGE
        assert (image.content.source, image.content.name) == ("a.png", "A")
        assert isinstance(divider.content, Div)

    def test_table_padding_and_header(self):
        html = "<table><tr><th>H1</th><th>H2</th></tr><tr><td>1</td></tr></table>"
        blocks = html_to_blocks(html)
        index = by_id(blocks)
        (table,) = [b for b in blocks if isinstance(b.content, Table)]
        header, row = (index[i] for i in table.children_ids)
        assert header.content.is_header is True
        assert row.content.is_header is False
        assert [index[c].content.text for c in row.children_ids] == ["1", ""]


class TestCodeBlocks:
    def test_language_from_class(self):
        (code,) = root_texts(html_to_blocks("<pre><code class=\"language-Go\">x := 1\n</code></pre>"))
        assert code.style == TextStyle.CODE
        assert code.language == "go"
        assert code.text == "x := 1"

    def test_consecutive_same_language_collapsed(self):
        html = (
            "<pre><code class=\"language-python\">x = 1</code></pre>\n"
            "<pre><code class=\"language-python\">y = 2</code></pre>"
            "<pre><code class=\"language-sql\">select 1</code></pre>"
        )
        first, second = root_texts(html_to_blocks(html))
        assert first.text == "x = 1\ny = 2"
        assert second.language == "sql"
