"""Map fetched Notion blocks to local blocks.

Each handler receives one :class:`NotionBlock` and returns the IDs of the
local blocks it produced at that level; children are mapped in order and
attached through ``children_ids``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from docimport.models import (
    Block,
    Bookmark,
    Content,
    Dataview,
    Div,
    File,
    FileType,
    Latex,
    Layout,
    LayoutStyle,
    Link,
    LinkStyle,
    Mark,
    MarkType,
    Table,
    TableOfContents,
    TableRow,
    Text,
    TextStyle,
)
from docimport.observability import get_logger
from docimport.utils.ids import new_block_id
from docimport.utils.text import utf16_len

from .blocks import BlockKind, NotionBlock, children_of
from .context import ImportContext
from .rich_text import DEFAULT_COLOR, build_rich_text, map_color, plain_text

log = get_logger("docimport.notion.mapper")

NOT_FOUND_PAGE_MESSAGE = "Can't access object in Notion, please provide access in API"

_TEXT_STYLES: dict[BlockKind, TextStyle] = {
    BlockKind.PARAGRAPH: TextStyle.PARAGRAPH,
    BlockKind.HEADING_1: TextStyle.HEADER1,
    BlockKind.HEADING_2: TextStyle.HEADER2,
    BlockKind.HEADING_3: TextStyle.HEADER3,
    BlockKind.BULLETED_LIST_ITEM: TextStyle.MARKED,
    BlockKind.NUMBERED_LIST_ITEM: TextStyle.NUMBERED,
    BlockKind.TOGGLE: TextStyle.TOGGLE,
    BlockKind.CALLOUT: TextStyle.CALLOUT,
    BlockKind.QUOTE: TextStyle.QUOTE,
    BlockKind.CODE: TextStyle.CODE,
    BlockKind.TO_DO: TextStyle.CHECKBOX,
}

_FILE_TYPES: dict[BlockKind, FileType] = {
    BlockKind.FILE: FileType.FILE,
    BlockKind.IMAGE: FileType.IMAGE,
    BlockKind.VIDEO: FileType.VIDEO,
    BlockKind.AUDIO: FileType.AUDIO,
    BlockKind.PDF: FileType.PDF,
}


def file_url(payload: dict[str, Any]) -> str:
    """URL of a Notion file object, hosted (``file``) or ``external``."""
    kind = payload.get("type", "")
    if kind in ("file", "external"):
        return (payload.get(kind) or {}).get("url", "")
    return ""


class BlockMapper:
    """Convert the block tree of one page.

    Parameters
    ----------
    context:
        Shared import context used to resolve links to other objects.
    page_id:
        Notion ID of the page whose blocks are mapped; ``child_page`` and
        ``child_database`` titles are resolved among its children.
    """

    def __init__(self, context: ImportContext, page_id: str) -> None:
        self._context = context
        self._page_id = page_id
        self.blocks: list[Block] = []

    def map(self, notion_blocks: list[NotionBlock]) -> list[Block]:
        """Return the local blocks, flat and parents first."""
        self._map_level(notion_blocks)
        return self.blocks

    # -- dispatch ----------------------------------------------------------

    def _map_level(self, notion_blocks: list[NotionBlock]) -> list[str]:
        produced: list[str] = []
        for notion_block in notion_blocks:
            handler = _HANDLERS.get(notion_block.kind)
            if handler is None:
                log.debug(
                    "skipping unsupported notion block",
                    extra={"extra_fields": {
                        "op": "map_blocks", "block_id": notion_block.id,
                        "type": notion_block.raw_type,
                    }},
                )
                continue
            produced.extend(handler(self, notion_block))
        return produced

    def _add(self, content: Content, notion_block: NotionBlock | None = None) -> Block:
        block = Block(id=new_block_id(), content=content)
        self.blocks.append(block)
        if notion_block is not None:
            children = children_of(notion_block)
            if children:
                block.children_ids.extend(self._map_level(children))
        return block

    def _resolve_mention(self, mention: dict[str, Any]) -> str | None:
        kind = mention.get("type")
        target = (mention.get(kind) or {}).get("id", "") if kind else ""
        if kind == "page":
            return self._context.notion_page_ids.get(target)
        if kind == "database":
            return self._context.notion_database_ids.get(target)
        return None

    # -- handlers ----------------------------------------------------------

    def _text(self, notion_block: NotionBlock) -> list[str]:
        payload = notion_block.payload
        text, marks = build_rich_text(payload.get("rich_text"), self._resolve_mention)
        content = Text(text=text, style=_TEXT_STYLES[notion_block.kind], marks=marks)
        color = payload.get("color") or DEFAULT_COLOR
        if color != DEFAULT_COLOR:
            content.color = map_color(color)
        if notion_block.kind == BlockKind.TO_DO:
            content.checked = bool(payload.get("checked", False))
        elif notion_block.kind == BlockKind.CODE:
            content.language = payload.get("language", "")
        elif notion_block.kind == BlockKind.CALLOUT:
            icon = payload.get("icon") or {}
            if icon.get("type") == "emoji":
                content.icon_emoji = icon.get("emoji", "")
        return [self._add(content, notion_block).id]

    def _divider(self, notion_block: NotionBlock) -> list[str]:
        return [self._add(Div()).id]

    def _table_of_contents(self, notion_block: NotionBlock) -> list[str]:
        return [self._add(TableOfContents()).id]

    def _equation(self, notion_block: NotionBlock) -> list[str]:
        return [self._add(Latex(text=notion_block.payload.get("expression", ""))).id]

    def _web_link(self, notion_block: NotionBlock) -> list[str]:
        """Embeds and link previews become their URL, linked."""
        url = notion_block.payload.get("url", "")
        mark = Mark(start=0, end=utf16_len(url), type=MarkType.LINK, param=url)
        return [self._add(Text(text=url, marks=[mark] if url else [])).id]

    def _bookmark(self, notion_block: NotionBlock) -> list[str]:
        payload = notion_block.payload
        title = plain_text(payload.get("caption"))
        return [self._add(Bookmark(url=payload.get("url", ""), title=title)).id]

    def _file(self, notion_block: NotionBlock) -> list[str]:
        payload = notion_block.payload
        url = file_url(payload)
        if not url:
            return []
        name = payload.get("name") or plain_text(payload.get("caption"))
        return [self._add(File(source=url, type=_FILE_TYPES[notion_block.kind], name=name)).id]

    def _column_list(self, notion_block: NotionBlock) -> list[str]:
        return [self._add(Layout(style=LayoutStyle.ROW), notion_block).id]

    def _column(self, notion_block: NotionBlock) -> list[str]:
        return [self._add(Layout(style=LayoutStyle.COLUMN), notion_block).id]

    def _table(self, notion_block: NotionBlock) -> list[str]:
        payload = notion_block.payload
        width = int(payload.get("table_width", 0) or 0)
        has_header = bool(payload.get("has_column_header", False))
        table = self._add(Table())
        for index, row in enumerate(children_of(notion_block)):
            if row.kind != BlockKind.TABLE_ROW:
                continue
            table.children_ids.append(self._table_row(row, width, has_header and index == 0))
        return [table.id]

    def _table_row(self, row: NotionBlock, width: int, is_header: bool) -> str:
        block = self._add(TableRow(is_header=is_header))
        cells = row.payload.get("cells") or []
        for index in range(max(width, len(cells))):
            cell = cells[index] if index < len(cells) else []
            text, marks = build_rich_text(cell, self._resolve_mention)
            block.children_ids.append(self._add(Text(text=text, marks=marks)).id)
        return block.id

    def _child_page(self, notion_block: NotionBlock) -> list[str]:
        target = self._context.get_target_block(
            self._page_id,
            notion_block.payload.get("title", ""),
            self._context.page_names,
            self._context.notion_page_ids,
        )
        if target is None:
            return [self._add(Text(text=NOT_FOUND_PAGE_MESSAGE)).id]
        return [self._add(Link(target_block_id=target, style=LinkStyle.PAGE)).id]

    def _child_database(self, notion_block: NotionBlock) -> list[str]:
        target = self._context.get_target_block(
            self._page_id,
            notion_block.payload.get("title", ""),
            self._context.database_names,
            self._context.notion_database_ids,
        )
        if target is None:
            return [self._add(Text(text=NOT_FOUND_PAGE_MESSAGE)).id]
        return [self._add(Dataview(target_object_id=target)).id]

    def _link_to_page(self, notion_block: NotionBlock) -> list[str]:
        payload = notion_block.payload
        target = None
        style = LinkStyle.PAGE
        if payload.get("page_id"):
            target = self._context.notion_page_ids.get(payload["page_id"])
        elif payload.get("database_id"):
            target = self._context.notion_database_ids.get(payload["database_id"])
            style = LinkStyle.DATASET
        if target is None:
            return [self._add(Text(text=NOT_FOUND_PAGE_MESSAGE)).id]
        return [self._add(Link(target_block_id=target, style=style)).id]


# ---------------------------------------------------------------------------
# Handler dispatch table
# ---------------------------------------------------------------------------

_Handler = Callable[[BlockMapper, NotionBlock], list[str]]

_HANDLERS: dict[BlockKind, _Handler] = {
    **{kind: BlockMapper._text for kind in _TEXT_STYLES},
    **{kind: BlockMapper._file for kind in _FILE_TYPES},
    BlockKind.DIVIDER: BlockMapper._divider,
    BlockKind.TABLE_OF_CONTENTS: BlockMapper._table_of_contents,
    BlockKind.EQUATION: BlockMapper._equation,
    BlockKind.EMBED: BlockMapper._web_link,
    BlockKind.LINK_PREVIEW: BlockMapper._web_link,
    BlockKind.BOOKMARK: BlockMapper._bookmark,
    BlockKind.COLUMN_LIST: BlockMapper._column_list,
    BlockKind.COLUMN: BlockMapper._column,
    BlockKind.TABLE: BlockMapper._table,
    BlockKind.CHILD_PAGE: BlockMapper._child_page,
    BlockKind.CHILD_DATABASE: BlockMapper._child_database,
    BlockKind.LINK_TO_PAGE: BlockMapper._link_to_page,
}
