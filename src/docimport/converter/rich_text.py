"""Build plain text plus inline marks from inline content.

Local text blocks store their content as a single string and a list of
:class:`~docimport.models.Mark` ranges.  Ranges are half-open and counted
in UTF-16 code units, so the builder keeps a running UTF-16 offset while
text is appended.

:class:`TextBuilder` is shared by the Markdown path (mistune inline
tokens, see :func:`build_text`) and the HTML path (BeautifulSoup nodes).
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from docimport.models import Mark, MarkType
from docimport.utils.text import utf16_len


class TextBuilder:
    """Accumulate text and marks.

    Examples
    --------
    >>> b = TextBuilder()
    >>> b.append("a ")
    >>> with b.mark(MarkType.BOLD):
    ...     b.append("\\U0001f600")
    >>> b.marks[0].start, b.marks[0].end
    (2, 4)
    """

    __slots__ = ("_offset", "_parts", "marks")

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._offset = 0
        self.marks: list[Mark] = []

    @property
    def text(self) -> str:
        return "".join(self._parts)

    @property
    def offset(self) -> int:
        """Current length in UTF-16 code units."""
        return self._offset

    def append(self, text: str) -> None:
        if not text:
            return
        self._parts.append(text)
        self._offset += utf16_len(text)

    @contextmanager
    def mark(self, mark_type: MarkType, param: str = "") -> Iterator[None]:
        """Mark everything appended inside the ``with`` block.

        Empty ranges are dropped.
        """
        start = self._offset
        yield
        if self._offset > start:
            self.marks.append(Mark(start=start, end=self._offset, type=mark_type, param=param))

    def build(self) -> tuple[str, list[Mark]]:
        """Return ``(text, marks)`` with marks sorted by start offset."""
        marks = sorted(self.marks, key=lambda m: (m.start, -m.end))
        return self.text, marks


# ---------------------------------------------------------------------------
# Markdown inline tokens
# ---------------------------------------------------------------------------

_WRAPPING_MARKS: dict[str, MarkType] = {
    "strong": MarkType.BOLD,
    "emphasis": MarkType.ITALIC,
    "strikethrough": MarkType.STRIKETHROUGH,
}


def build_text(children: list[dict]) -> tuple[str, list[Mark]]:
    """Convert normalized inline tokens to ``(text, marks)``.

    Handles: text, strong, emphasis, strikethrough, codespan, link, image
    (alt text), inline_math, softbreak, linebreak, html_inline.

    Parameters
    ----------
    children:
        List of normalized inline AST tokens.

    Returns
    -------
    tuple[str, list[Mark]]
        The flattened text and its UTF-16 mark ranges.
    """
    builder = TextBuilder()
    append_tokens(builder, children)
    return builder.build()


def append_tokens(builder: TextBuilder, children: list[dict]) -> None:
    """Append inline tokens to an existing *builder*."""
    for token in children:
        token_type = token.get("type", "")

        if token_type in ("text", "html_inline", "inline_math"):
            builder.append(token.get("raw", ""))

        elif token_type in _WRAPPING_MARKS:
            with builder.mark(_WRAPPING_MARKS[token_type]):
                append_tokens(builder, token.get("children", []))

        elif token_type == "codespan":
            with builder.mark(MarkType.KEYBOARD):
                builder.append(token.get("raw", ""))

        elif token_type == "link":
            url = token.get("attrs", {}).get("url", "")
            with builder.mark(MarkType.LINK, url):
                append_tokens(builder, token.get("children", []))

        elif token_type == "image":
            alt = extract_text(token.get("children", []))
            builder.append(alt or token.get("attrs", {}).get("url", ""))

        elif token_type == "softbreak":
            builder.append(" ")

        elif token_type == "linebreak":
            builder.append("\n")

        # Unknown inline types are silently skipped


def extract_text(children: list[dict]) -> str:
    """Recursively extract plain text from inline tokens."""
    parts: list[str] = []
    for token in children:
        token_type = token.get("type", "")
        if token_type == "text":
            parts.append(token.get("raw", ""))
        elif "children" in token:
            parts.append(extract_text(token["children"]))
        elif "raw" in token:
            parts.append(token["raw"])
    return "".join(parts)
