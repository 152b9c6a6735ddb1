"""UTF-16 helpers for mark ranges.

Marks are half-open ranges over UTF-16 code units, so every offset that
ends up in a :class:`~docimport.models.Mark` must be measured with
:func:`utf16_len` rather than ``len``.  Characters outside the Basic
Multilingual Plane (most emoji) count as two units.
"""

from __future__ import annotations


def utf16_len(text: str) -> int:
    """Return the length of *text* in UTF-16 code units.

    Examples
    --------
    >>> utf16_len("abc")
    3
    >>> utf16_len("a\U0001f600")
    3
    """
    return len(text.encode("utf-16-le")) // 2


def utf16_slice(text: str, start: int, end: int) -> str:
    """Return the substring covering UTF-16 units ``[start, end)``."""
    encoded = text.encode("utf-16-le")
    return encoded[start * 2 : end * 2].decode("utf-16-le", errors="ignore")


def is_whole_line(text: str, start: int, end: int) -> bool:
    """True when only whitespace surrounds ``[start, end)`` in *text*.

    Offsets are UTF-16 units, as produced for marks.
    """
    before = utf16_slice(text, 0, start)
    after = utf16_slice(text, end, utf16_len(text))
    return not before.strip() and not after.strip()
