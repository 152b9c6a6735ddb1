"""Notion block payloads and the block tree fetcher.

Raw block JSON is parsed into :class:`NotionBlock`, a tagged union keyed
by :class:`BlockKind`.  Kinds the importer does not know become
``UNSUPPORTED`` rather than failing.  :class:`BlockFetcher` expands
``has_children`` with an explicit stack bounded by ``max_depth``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from docimport.notion_api import BlockAPI
from docimport.observability import get_logger
from docimport.progress import Progress

log = get_logger("docimport.notion.blocks")


class BlockKind(str, Enum):
    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TOGGLE = "toggle"
    CALLOUT = "callout"
    QUOTE = "quote"
    CODE = "code"
    TO_DO = "to_do"
    DIVIDER = "divider"
    TABLE_OF_CONTENTS = "table_of_contents"
    EMBED = "embed"
    BOOKMARK = "bookmark"
    LINK_PREVIEW = "link_preview"
    EQUATION = "equation"
    FILE = "file"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    PDF = "pdf"
    COLUMN_LIST = "column_list"
    COLUMN = "column"
    TABLE = "table"
    TABLE_ROW = "table_row"
    CHILD_PAGE = "child_page"
    CHILD_DATABASE = "child_database"
    LINK_TO_PAGE = "link_to_page"
    UNSUPPORTED = "unsupported"


_KINDS: dict[str, BlockKind] = {kind.value: kind for kind in BlockKind}

# Kinds whose ``has_children`` refers to nested blocks of this page.
# child_page / child_database children belong to another object.
_CONTAINER_KINDS: frozenset[BlockKind] = frozenset({
    BlockKind.PARAGRAPH,
    BlockKind.HEADING_1,
    BlockKind.HEADING_2,
    BlockKind.HEADING_3,
    BlockKind.BULLETED_LIST_ITEM,
    BlockKind.NUMBERED_LIST_ITEM,
    BlockKind.TOGGLE,
    BlockKind.CALLOUT,
    BlockKind.QUOTE,
    BlockKind.TO_DO,
    BlockKind.COLUMN_LIST,
    BlockKind.COLUMN,
    BlockKind.TABLE,
})


@dataclass
class NotionBlock:
    """One Notion block.

    Attributes
    ----------
    id:
        Notion block ID.
    kind:
        Parsed block type; ``UNSUPPORTED`` for anything unknown.
    raw_type:
        The ``type`` string as received.
    payload:
        The type-specific object (``block[block["type"]]``).
    has_children:
        Whether Notion reports nested blocks.
    children:
        Nested blocks, filled in by :class:`BlockFetcher`.
    """

    id: str
    kind: BlockKind
    raw_type: str = ""
    payload: dict[str, Any] = field(default_factory=dict)
    has_children: bool = False
    children: list[NotionBlock] = field(default_factory=list)


def parse_block(raw: dict[str, Any]) -> NotionBlock:
    """Parse one block object from ``GET /blocks/{id}/children``.

    Raises
    ------
    ValueError
        When the object has no ID or type, or its payload is not an object.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"block is not an object: {type(raw).__name__}")
    block_id = raw.get("id")
    raw_type = raw.get("type")
    if not block_id or not raw_type:
        raise ValueError("block without id or type")
    kind = _KINDS.get(raw_type, BlockKind.UNSUPPORTED)
    payload = raw.get(raw_type, {})
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValueError(f"block {block_id} has a malformed {raw_type!r} payload")
    return NotionBlock(
        id=block_id,
        kind=kind,
        raw_type=raw_type,
        payload=payload,
        has_children=bool(raw.get("has_children", False)),
    )


def is_container(kind: BlockKind) -> bool:
    return kind in _CONTAINER_KINDS


def children_of(block: NotionBlock) -> list[NotionBlock]:
    """Nested blocks of *block*; empty for non-container kinds."""
    if not is_container(block.kind):
        return []
    return block.children


class BlockFetcher:
    """Fetch a page's block tree.

    Parameters
    ----------
    blocks:
        The block endpoint wrapper.
    max_depth:
        Nesting level at which children are no longer fetched.
    progress:
        Checked for cancellation before every children request.
    """

    def __init__(self, blocks: BlockAPI, max_depth: int, progress: Progress | None = None) -> None:
        self._blocks = blocks
        self._max_depth = max_depth
        self._progress = progress

    def fetch(self, page_id: str) -> list[NotionBlock]:
        """Return the top-level blocks of *page_id* with children attached.

        Raises
        ------
        NotionError
            When any children request fails.
        CancelError
            When the import is cancelled while fetching.
        """
        return self.expand(self.fetch_level(page_id))

    def expand(self, roots: list[NotionBlock]) -> list[NotionBlock]:
        """Attach the children of every container in *roots*, depth first."""
        stack = [(block, 1) for block in reversed(roots)]
        while stack:
            block, depth = stack.pop()
            if not (block.has_children and is_container(block.kind)):
                continue
            if depth >= self._max_depth:
                log.warning(
                    "block nesting too deep, children dropped",
                    extra={"extra_fields": {"op": "fetch_blocks", "block_id": block.id, "depth": depth}},
                )
                continue
            if self._progress is not None and self._progress.cancelled:
                # surfaces the CancelError
                self._progress.try_step(0)
            block.children = self.fetch_level(block.id)
            stack.extend((child, depth + 1) for child in reversed(block.children))
        return roots

    def fetch_level(self, block_id: str) -> list[NotionBlock]:
        """Direct children of *block_id*, malformed entries skipped."""
        parsed: list[NotionBlock] = []
        for raw in self._blocks.get_children(block_id):
            try:
                parsed.append(parse_block(raw))
            except ValueError as exc:
                log.warning(
                    "skipping malformed block",
                    extra={"extra_fields": {"op": "fetch_blocks", "parent_id": block_id, "error": str(exc)}},
                )
        return parsed
