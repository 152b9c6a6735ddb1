"""Format parsers producing local blocks.

Public API:

- :class:`MarkdownToBlocks` -- Markdown text -> blocks.
- :func:`html_to_blocks` -- HTML document -> blocks.
- :class:`ASTNormalizer` -- parse and normalize Markdown to canonical AST.
- :func:`build_blocks` -- convert normalized AST to blocks.
- :class:`TextBuilder` / :func:`build_text` -- inline content to text
  plus UTF-16 marks.
"""

from docimport.converter.ast_normalizer import ASTNormalizer
from docimport.converter.block_builder import build_blocks
from docimport.converter.html_parser import HTMLToBlocks, collapse_code_blocks, html_to_blocks
from docimport.converter.md_to_blocks import MarkdownToBlocks
from docimport.converter.rich_text import TextBuilder, build_text

__all__ = [
    "ASTNormalizer",
    "HTMLToBlocks",
    "MarkdownToBlocks",
    "TextBuilder",
    "build_blocks",
    "build_text",
    "collapse_code_blocks",
    "html_to_blocks",
]
