"""Convert an HTML document to local blocks.

BeautifulSoup (with the stdlib ``html.parser`` backend) builds the DOM;
:class:`HTMLToBlocks` walks ``<body>`` and maps elements to blocks:

- ``h1``..``h6`` -> header1..header3 (deeper levels clamp to header3)
- ``p`` / ``div`` / ``section`` text -> paragraph
- ``ul`` / ``ol`` -> marked / numbered items, ``<input type=checkbox>`` ->
  checkbox items; nested lists become children
- ``pre`` -> code, language from ``class="language-xxx"``
- ``blockquote`` -> quote, ``aside`` -> callout, ``details`` -> toggle
- ``hr`` -> divider, ``img`` -> image file block, ``table`` -> table

Inline ``b``/``strong``, ``i``/``em``, ``s``/``del``, ``u``, ``code``/
``kbd`` and ``a`` produce marks.  Consecutive code blocks with the same
language are collapsed into one.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment

from docimport.converter.rich_text import TextBuilder
from docimport.models import (
    Block,
    Content,
    Div,
    File,
    FileType,
    Mark,
    MarkType,
    Table,
    TableRow,
    Text,
    TextStyle,
)
from docimport.utils.ids import new_block_id
from docimport.utils.text import utf16_len

_HEADINGS: dict[str, TextStyle] = {
    "h1": TextStyle.HEADER1,
    "h2": TextStyle.HEADER2,
    "h3": TextStyle.HEADER3,
    "h4": TextStyle.HEADER3,
    "h5": TextStyle.HEADER3,
    "h6": TextStyle.HEADER3,
}

_INLINE_MARKS: dict[str, MarkType] = {
    "b": MarkType.BOLD,
    "strong": MarkType.BOLD,
    "i": MarkType.ITALIC,
    "em": MarkType.ITALIC,
    "s": MarkType.STRIKETHROUGH,
    "del": MarkType.STRIKETHROUGH,
    "strike": MarkType.STRIKETHROUGH,
    "u": MarkType.UNDERSCORED,
    "ins": MarkType.UNDERSCORED,
    "code": MarkType.KEYBOARD,
    "kbd": MarkType.KEYBOARD,
}

_IGNORED: frozenset[str] = frozenset({
    "head", "style", "script", "meta", "link", "title", "noscript", "template",
})

_INLINE_TAGS: frozenset[str] = frozenset({
    *_INLINE_MARKS, "a", "span", "br", "sub", "sup", "small", "mark", "abbr",
    "label", "font",
})


def html_to_blocks(source: bytes | str) -> list[Block]:
    """Parse *source* and return its blocks (flat, parents first)."""
    return HTMLToBlocks().convert(source)


class HTMLToBlocks:
    """One-shot converter; create a new instance per document."""

    def __init__(self) -> None:
        self.blocks: list[Block] = []

    def convert(self, source: bytes | str) -> list[Block]:
        soup = BeautifulSoup(source, "html.parser")
        body = soup.find("body") or soup
        self._process_children(body)
        self.blocks = collapse_code_blocks(self.blocks)
        return self.blocks

    # -- block level -------------------------------------------------------

    def _add(self, content: Content) -> Block:
        block = Block(id=new_block_id(), content=content)
        self.blocks.append(block)
        return block

    def _process_children(self, element: Tag) -> list[str]:
        """Convert the children of *element*; returns top-level block IDs."""
        produced: list[str] = []
        pending = TextBuilder()

        def flush() -> None:
            nonlocal pending
            text, marks = pending.build()
            if text.strip():
                produced.append(self._add(Text(text=text.strip(), marks=_shift(text, marks))).id)
            pending = TextBuilder()

        for child in element.children:
            if isinstance(child, Comment):
                continue
            if isinstance(child, NavigableString):
                _append_string(pending, child)
                continue
            if not isinstance(child, Tag):
                continue
            name = child.name.lower()
            if name in _IGNORED:
                continue
            if name in _INLINE_TAGS and not _has_block_descendant(child):
                self._inline(child, pending)
                continue
            flush()
            produced.extend(self._process_element(child, name))
        flush()
        return produced

    def _process_element(self, tag: Tag, name: str) -> list[str]:
        if name in _HEADINGS:
            return [self._text_block(tag, _HEADINGS[name])]
        if name == "p":
            images = tag.find_all("img")
            if len(images) == 1 and not tag.get_text(strip=True):
                return self._image(images[0])
            return [self._text_block(tag, TextStyle.PARAGRAPH)] if tag.get_text(strip=True) else []
        if name in ("ul", "ol"):
            return self._list(tag, TextStyle.NUMBERED if name == "ol" else TextStyle.MARKED)
        if name == "pre":
            return [self._code(tag)]
        if name == "blockquote":
            return [self._container(tag, Text(style=TextStyle.QUOTE))]
        if name == "aside":
            return [self._container(tag, Text(style=TextStyle.CALLOUT))]
        if name == "details":
            return [self._details(tag)]
        if name == "hr":
            return [self._add(Div()).id]
        if name == "img":
            return self._image(tag)
        if name == "table":
            return self._table(tag)
        if name == "br":
            return []
        # div, section, article, main, figure ... are transparent
        return self._process_children(tag)

    def _text_block(self, tag: Tag, style: TextStyle) -> str:
        text, marks = self._inline_text(tag)
        return self._add(Text(text=text, style=style, marks=marks)).id

    def _container(self, tag: Tag, content: Text) -> str:
        """Leading inline content becomes the text; block children nest."""
        block = self._add(content)
        child_ids = self._process_children(tag)
        if child_ids:
            first = self._find(child_ids[0])
            if (
                first is not None
                and isinstance(first.content, Text)
                and first.content.style == TextStyle.PARAGRAPH
                and not first.children_ids
            ):
                content.text = first.content.text
                content.marks = first.content.marks
                self.blocks.remove(first)
                child_ids = child_ids[1:]
        block.children_ids.extend(child_ids)
        return block.id

    def _details(self, tag: Tag) -> str:
        summary = tag.find("summary")
        text, marks = "", []
        if summary is not None:
            text, marks = self._inline_text(summary)
            summary.extract()
        block = self._add(Text(text=text, style=TextStyle.TOGGLE, marks=marks))
        block.children_ids.extend(self._process_children(tag))
        return block.id

    def _list(self, tag: Tag, style: TextStyle) -> list[str]:
        produced: list[str] = []
        for li in tag.find_all("li", recursive=False):
            item_style = style
            checked = False
            checkbox = li.find("input", attrs={"type": "checkbox"})
            if checkbox is not None:
                item_style = TextStyle.CHECKBOX
                checked = checkbox.has_attr("checked")
                checkbox.decompose()
            nested = li.find_all(["ul", "ol"], recursive=False)
            for nested_list in nested:
                nested_list.extract()
            text, marks = self._inline_text(li)
            block = self._add(Text(text=text, style=item_style, marks=marks, checked=checked))
            for nested_list in nested:
                nested_style = TextStyle.NUMBERED if nested_list.name == "ol" else TextStyle.MARKED
                block.children_ids.extend(self._list(nested_list, nested_style))
            produced.append(block.id)
        return produced

    def _code(self, pre: Tag) -> str:
        code = pre.find("code")
        source = code if code is not None else pre
        language = ""
        for css_class in source.get("class") or []:
            if css_class.startswith("language-"):
                language = css_class[len("language-"):].lower()
                break
        text = source.get_text().rstrip("\n")
        return self._add(Text(text=text, style=TextStyle.CODE, language=language)).id

    def _image(self, img: Tag) -> list[str]:
        src = img.get("src") or ""
        if not src:
            return []
        name = img.get("alt") or ""
        return [self._add(File(source=src, type=FileType.IMAGE, name=name)).id]

    def _table(self, tag: Tag) -> list[str]:
        rows = tag.find_all("tr")
        if not rows:
            return []
        width = max(len(r.find_all(["td", "th"], recursive=False)) for r in rows)
        table = self._add(Table())
        for tr in rows:
            cells = tr.find_all(["td", "th"], recursive=False)
            is_header = bool(cells) and all(c.name == "th" for c in cells)
            row = self._add(TableRow(is_header=is_header))
            table.children_ids.append(row.id)
            for index in range(width):
                if index < len(cells):
                    text, marks = self._inline_text(cells[index])
                else:
                    text, marks = "", []
                row.children_ids.append(self._add(Text(text=text, marks=marks)).id)
        return [table.id]

    def _find(self, block_id: str) -> Block | None:
        for block in self.blocks:
            if block.id == block_id:
                return block
        return None

    # -- inline level ------------------------------------------------------

    def _inline_text(self, tag: Tag) -> tuple[str, list[Mark]]:
        builder = TextBuilder()
        self._inline(tag, builder, wrap=False)
        text, marks = builder.build()
        return text.strip(), _shift(text, marks)

    def _inline(self, tag: Tag, builder: TextBuilder, wrap: bool = True) -> None:
        name = tag.name.lower() if wrap else ""
        if name == "br":
            builder.append("\n")
            return
        if name == "a" and tag.get("href"):
            with builder.mark(MarkType.LINK, tag["href"]):
                self._inline_children(tag, builder)
            return
        if name in _INLINE_MARKS:
            with builder.mark(_INLINE_MARKS[name]):
                self._inline_children(tag, builder)
            return
        self._inline_children(tag, builder)

    def _inline_children(self, tag: Tag, builder: TextBuilder) -> None:
        for child in tag.children:
            if isinstance(child, Comment):
                continue
            if isinstance(child, NavigableString):
                _append_string(builder, child)
            elif isinstance(child, Tag) and child.name.lower() not in _IGNORED:
                self._inline(child, builder)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _append_string(builder: TextBuilder, value: NavigableString) -> None:
    """Append text with HTML whitespace collapsed to single spaces."""
    text = " ".join(str(value).split())
    if not text:
        if str(value) and builder.offset and not builder.text.endswith((" ", "\n")):
            builder.append(" ")
        return
    if str(value)[:1].isspace() and builder.offset and not builder.text.endswith((" ", "\n")):
        text = " " + text
    if str(value)[-1:].isspace():
        text += " "
    builder.append(text)


def _shift(text: str, marks: list[Mark]) -> list[Mark]:
    """Re-base marks after leading whitespace is stripped from *text*."""
    leading = utf16_len(text) - utf16_len(text.lstrip())
    stripped_len = utf16_len(text.strip())
    shifted: list[Mark] = []
    for mark in marks:
        start = max(mark.start - leading, 0)
        end = min(mark.end - leading, stripped_len)
        if end > start:
            mark.start, mark.end = start, end
            shifted.append(mark)
    return shifted


def _has_block_descendant(tag: Tag) -> bool:
    return tag.find(
        ["p", "div", "ul", "ol", "pre", "table", "blockquote", "h1", "h2", "h3",
         "h4", "h5", "h6", "hr", "img", "section", "aside", "details"],
    ) is not None


def collapse_code_blocks(blocks: list[Block]) -> list[Block]:
    """Merge runs of sibling code blocks sharing a language.

    The first block of a run keeps its ID and receives the joined text;
    the others are removed from the list and from their parent.
    """
    removed: set[str] = set()
    by_id = {b.id: b for b in blocks}
    referenced = {cid for b in blocks for cid in b.children_ids}
    sibling_lists = [b.children_ids for b in blocks if b.children_ids]
    sibling_lists.append([b.id for b in blocks if b.id not in referenced])

    for ids in sibling_lists:
        head: Block | None = None
        for block_id in list(ids):
            block = by_id[block_id]
            content = block.content
            is_code = isinstance(content, Text) and content.style == TextStyle.CODE
            if (
                is_code
                and head is not None
                and head.content.language == content.language
                and not block.children_ids
            ):
                head.content.text = f"{head.content.text}\n{content.text}"
                ids.remove(block_id)
                removed.add(block_id)
                continue
            head = block if is_code else None

    return [b for b in blocks if b.id not in removed]
