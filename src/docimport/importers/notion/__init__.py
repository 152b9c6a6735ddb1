"""Notion importer: search, databases, pages, properties and token checks."""

from __future__ import annotations

from .blocks import BlockFetcher, BlockKind, NotionBlock, children_of, is_container, parse_block
from .context import ImportContext, RelationDefinition
from .converter import NAME, ROOT_COLLECTION_NAME, NotionConverter
from .mapper import NOT_FOUND_PAGE_MESSAGE, BlockMapper
from .rich_text import map_color
from .validator import TokenValidator, ValidateTokenResult

__all__ = [
    "NAME",
    "NOT_FOUND_PAGE_MESSAGE",
    "ROOT_COLLECTION_NAME",
    "BlockFetcher",
    "BlockKind",
    "BlockMapper",
    "ImportContext",
    "NotionBlock",
    "NotionConverter",
    "RelationDefinition",
    "TokenValidator",
    "ValidateTokenResult",
    "children_of",
    "is_container",
    "map_color",
    "parse_block",
]
