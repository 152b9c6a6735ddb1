"""Parse Markdown and normalize to canonical AST tokens.

This module wraps mistune v3's AST renderer and reduces the raw token
stream to the small set of token types the block builder understands.

Canonical block tokens:
    heading, paragraph, block_quote, list, list_item, task_list_item,
    block_code, table, thematic_break, block_math, html_block

Canonical inline tokens:
    text, strong, emphasis, codespan, strikethrough, link, image,
    inline_math, softbreak, linebreak, html_inline

Footnote definitions are dropped; references survive as ``[^key]`` text.
"""

from __future__ import annotations

import mistune

_PLUGINS: tuple[str, ...] = (
    "strikethrough",
    "table",
    "task_lists",
    "url",
    "math",
    "footnotes",
)

_RENAMED: dict[str, str] = {
    "block_html": "html_block",
    "block_text": "paragraph",
    "inline_html": "html_inline",
}

# Leaf tokens whose payload lives in ``raw``.
_RAW_TYPES: frozenset[str] = frozenset({
    "block_code", "block_math", "html_block",
    "text", "codespan", "inline_math", "html_inline",
})

_CONTAINER_TYPES: frozenset[str] = frozenset({
    "heading", "paragraph", "block_quote", "list", "list_item",
    "task_list_item", "table", "table_head", "table_body", "table_row",
    "table_cell", "strong", "emphasis", "strikethrough", "link", "image",
})

_EMPTY_TYPES: frozenset[str] = frozenset({"thematic_break", "softbreak", "linebreak"})

_SKIP_TYPES: frozenset[str] = frozenset({"blank_line", "footnotes"})


class ASTNormalizer:
    """Parse Markdown and normalize to canonical AST tokens."""

    def __init__(self) -> None:
        self._parser = mistune.create_markdown(renderer="ast", plugins=list(_PLUGINS))

    def parse(self, markdown: str) -> list[dict]:
        """Parse *markdown* and return the normalized token list."""
        raw_tokens = self._parser(markdown)
        if isinstance(raw_tokens, str):
            return []
        return self._normalize_tokens(raw_tokens)

    def _normalize_tokens(self, tokens: list[dict]) -> list[dict]:
        result: list[dict] = []
        for token in tokens:
            normalized = self._normalize_token(token)
            if normalized is not None:
                result.append(normalized)
        return result

    def _normalize_token(self, token: dict) -> dict | None:
        raw_type = token.get("type", "")
        if raw_type in _SKIP_TYPES:
            return None

        if raw_type == "footnote_ref":
            key = token.get("raw", token.get("attrs", {}).get("index", "?"))
            return {"type": "text", "raw": f"[^{key}]"}

        # "raw" children appear inside codespan and block_code in some
        # mistune versions.
        if raw_type == "raw":
            return {"type": "text", "raw": token.get("raw", "")}

        canonical = _RENAMED.get(raw_type, raw_type)
        result: dict = {"type": canonical}

        if canonical in _EMPTY_TYPES:
            return result

        attrs = token.get("attrs")
        if attrs:
            result["attrs"] = dict(attrs)

        if canonical in _RAW_TYPES:
            raw = token.get("raw", "")
            if canonical == "block_code" and raw.endswith("\n"):
                raw = raw[:-1]
            result["raw"] = raw
            return result

        if canonical in _CONTAINER_TYPES:
            children = token.get("children")
            if children:
                result["children"] = self._normalize_tokens(children)
            return result

        # Unknown token: skip silently
        return None
