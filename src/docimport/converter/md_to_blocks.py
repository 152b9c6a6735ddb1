"""Markdown-to-blocks pipeline.

:class:`MarkdownToBlocks` runs two stages:

1. **Parse / normalize** -- mistune parses raw Markdown and
   :class:`ASTNormalizer` maps token types to canonical names.
2. **Build** -- :func:`build_blocks` converts normalized tokens into local
   blocks with UTF-16 marks.

Link targets are left exactly as written; resolving them against other
files is the Markdown importer's job.
"""

from __future__ import annotations

from docimport.converter.ast_normalizer import ASTNormalizer
from docimport.converter.block_builder import build_blocks
from docimport.models import Block


class MarkdownToBlocks:
    """Convert Markdown text to local blocks.

    Examples
    --------
    >>> blocks = MarkdownToBlocks().convert("# Hello\\n\\nWorld")
    >>> [b.content.style.value for b in blocks]
    ['header1', 'paragraph']
    """

    def __init__(self) -> None:
        self._normalizer = ASTNormalizer()

    def convert(self, markdown: str) -> list[Block]:
        tokens = self._normalizer.parse(markdown)
        return build_blocks(tokens)
