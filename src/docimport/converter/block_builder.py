"""Convert normalized Markdown AST tokens to local blocks.

Block mapping:

- heading (levels 1-3 map to header1/2/3; level 4+ is clamped to header3)
- paragraph -> paragraph text block, or an image file block when the
  paragraph holds a single image
- block_quote -> quote text block; non-paragraph children are nested
- list -> marked / numbered text blocks with nested children
- task_list_item -> checkbox text block with checked state
- block_code -> code text block with language
- thematic_break -> line divider
- table -> delegate to tables.py
- block_math -> latex block
- html_block -> skipped
"""

from __future__ import annotations

from collections.abc import Callable as _Callable

from docimport.converter.rich_text import build_text, extract_text
from docimport.converter.tables import build_table
from docimport.models import (
    Block,
    Content,
    Div,
    File,
    FileType,
    Latex,
    Text,
    TextStyle,
)
from docimport.observability import get_logger
from docimport.utils.ids import new_block_id

log = get_logger("docimport.converter.blocks")

_HEADING_STYLES: dict[int, TextStyle] = {
    1: TextStyle.HEADER1,
    2: TextStyle.HEADER2,
    3: TextStyle.HEADER3,
}

_MAX_NESTING_DEPTH = 32


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_blocks(tokens: list[dict]) -> list[Block]:
    """Convert normalized AST tokens to a flat block list.

    Parent blocks precede their children; tree structure is carried by
    ``children_ids``.

    Parameters
    ----------
    tokens:
        List of canonical AST tokens from :class:`ASTNormalizer`.

    Returns
    -------
    list[Block]
        Every block produced, top-level and nested.
    """
    ctx = BuildContext()
    _process_tokens(tokens, ctx)
    return ctx.blocks


class BuildContext:
    """Mutable accumulator for one block building pass."""

    __slots__ = ("blocks",)

    def __init__(self) -> None:
        self.blocks: list[Block] = []

    def add(self, content: Content) -> Block:
        block = Block(id=new_block_id(), content=content)
        self.blocks.append(block)
        return block


# ---------------------------------------------------------------------------
# Token dispatch
# ---------------------------------------------------------------------------

def _process_tokens(tokens: list[dict], ctx: BuildContext, depth: int = 0) -> list[str]:
    """Process *tokens* and return the IDs of the blocks they produced."""
    produced: list[str] = []
    for token in tokens:
        produced.extend(_process_token(token, ctx, depth))
    return produced


def _process_token(token: dict, ctx: BuildContext, depth: int = 0) -> list[str]:
    token_type = token.get("type", "")
    handler = _BLOCK_HANDLERS.get(token_type)
    if handler is not None:
        return handler(token, ctx, depth)
    if token_type:
        log.debug(
            "skipping unknown markdown token",
            extra={"extra_fields": {"op": "build_blocks", "token_type": token_type}},
        )
    return []


# ---------------------------------------------------------------------------
# Block builders
# ---------------------------------------------------------------------------

def _build_heading(token: dict, ctx: BuildContext, depth: int) -> list[str]:
    level = token.get("attrs", {}).get("level", 1)
    text, marks = build_text(token.get("children", []))
    style = _HEADING_STYLES.get(level, TextStyle.HEADER3)
    return [ctx.add(Text(text=text, style=style, marks=marks)).id]


def _build_paragraph(token: dict, ctx: BuildContext, depth: int) -> list[str]:
    children = token.get("children", [])

    if len(children) == 1 and children[0].get("type") == "image":
        return _build_image(children[0], ctx)

    text, marks = build_text(children)
    if not text.strip():
        return []
    return [ctx.add(Text(text=text, marks=marks)).id]


def _build_image(token: dict, ctx: BuildContext) -> list[str]:
    url = token.get("attrs", {}).get("url", "")
    if not url:
        return []
    name = extract_text(token.get("children", []))
    return [ctx.add(File(source=url, type=FileType.IMAGE, name=name)).id]


def _build_block_quote(token: dict, ctx: BuildContext, depth: int) -> list[str]:
    """Paragraphs form the quote text; anything else is nested under it."""
    paragraphs: list[dict] = []
    nested: list[dict] = []
    for child in token.get("children", []):
        if child.get("type") == "paragraph":
            if paragraphs:
                paragraphs.append({"type": "linebreak"})
            paragraphs.extend(child.get("children", []))
        else:
            nested.append(child)

    text, marks = build_text(paragraphs)
    block = ctx.add(Text(text=text, style=TextStyle.QUOTE, marks=marks))
    if nested and depth + 1 < _MAX_NESTING_DEPTH:
        block.children_ids.extend(_process_tokens(nested, ctx, depth + 1))
    return [block.id]


def _build_list(token: dict, ctx: BuildContext, depth: int) -> list[str]:
    ordered = token.get("attrs", {}).get("ordered", False)
    style = TextStyle.NUMBERED if ordered else TextStyle.MARKED
    produced: list[str] = []
    for item in token.get("children", []):
        item_type = item.get("type", "")
        if item_type == "task_list_item":
            checked = bool(item.get("attrs", {}).get("checked", False))
            produced.append(_build_list_item(item, TextStyle.CHECKBOX, ctx, depth, checked))
        elif item_type == "list_item":
            produced.append(_build_list_item(item, style, ctx, depth))
    return produced


def _build_list_item(
    token: dict,
    style: TextStyle,
    ctx: BuildContext,
    depth: int,
    checked: bool = False,
) -> str:
    """Build one list item; nested lists and blocks become its children."""
    inline: list[dict] = []
    nested: list[dict] = []
    for child in token.get("children", []):
        if child.get("type") == "paragraph":
            if inline:
                inline.append({"type": "linebreak"})
            inline.extend(child.get("children", []))
        else:
            nested.append(child)

    text, marks = build_text(inline)
    block = ctx.add(Text(text=text, style=style, marks=marks, checked=checked))
    if nested:
        if depth + 1 >= _MAX_NESTING_DEPTH:
            log.warning(
                "list nesting too deep, dropping nested items",
                extra={"extra_fields": {"op": "build_blocks", "depth": depth + 1}},
            )
        else:
            block.children_ids.extend(_process_tokens(nested, ctx, depth + 1))
    return block.id


def _build_code_block(token: dict, ctx: BuildContext, depth: int) -> list[str]:
    info = token.get("attrs", {}).get("info") or ""
    language = info.strip().split()[0].lower() if info.strip() else ""
    text = Text(text=token.get("raw", ""), style=TextStyle.CODE, language=language)
    return [ctx.add(text).id]


def _build_divider(token: dict, ctx: BuildContext, depth: int) -> list[str]:
    return [ctx.add(Div()).id]


def _build_table(token: dict, ctx: BuildContext, depth: int) -> list[str]:
    table = build_table(token, ctx)
    return [table.id] if table is not None else []


def _build_block_math(token: dict, ctx: BuildContext, depth: int) -> list[str]:
    return [ctx.add(Latex(text=token.get("raw", "").strip())).id]


def _skip_html_block(token: dict, ctx: BuildContext, depth: int) -> list[str]:
    log.debug(
        "skipping raw html block",
        extra={"extra_fields": {"op": "build_blocks", "raw": token.get("raw", "")[:200]}},
    )
    return []


# ---------------------------------------------------------------------------
# Block handler dispatch table
# ---------------------------------------------------------------------------

_BlockHandler = _Callable[[dict, BuildContext, int], list[str]]

_BLOCK_HANDLERS: dict[str, _BlockHandler] = {
    "heading": _build_heading,
    "paragraph": _build_paragraph,
    "block_quote": _build_block_quote,
    "list": _build_list,
    "block_code": _build_code_block,
    "thematic_break": _build_divider,
    "table": _build_table,
    "block_math": _build_block_math,
    "html_block": _skip_html_block,
}
