"""Notion rich text arrays to local text and marks."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from docimport.converter.rich_text import TextBuilder
from docimport.models import Mark, MarkType

DEFAULT_COLOR = "default"
_BACKGROUND_SUFFIX = "_background"

_ANNOTATION_MARKS: dict[str, MarkType] = {
    "bold": MarkType.BOLD,
    "italic": MarkType.ITALIC,
    "strikethrough": MarkType.STRIKETHROUGH,
    "underline": MarkType.UNDERSCORED,
    "code": MarkType.KEYBOARD,
}


def map_color(color: str) -> str:
    """Translate a Notion palette name to the local one.

    Names map to themselves except ``gray``, which is ``grey`` locally.

    Examples
    --------
    >>> map_color("gray")
    'grey'
    >>> map_color("blue")
    'blue'
    """
    if color == "gray":
        return "grey"
    return color


def plain_text(rich_text: list[dict[str, Any]] | None) -> str:
    """Concatenate the ``plain_text`` of every item."""
    return "".join(item.get("plain_text", "") for item in rich_text or [])


def build_rich_text(
    rich_text: list[dict[str, Any]] | None,
    resolve_mention: Callable[[dict[str, Any]], str | None] | None = None,
) -> tuple[str, list[Mark]]:
    """Convert a Notion rich text array to ``(text, marks)``.

    Parameters
    ----------
    rich_text:
        The array as found in block payloads and property values.
    resolve_mention:
        Maps a ``mention`` object to a local object ID; mentions it cannot
        resolve fall back to a link on their ``href``.
    """
    builder = TextBuilder()
    for item in rich_text or []:
        text = item.get("plain_text", "")
        if not text:
            continue
        start = builder.offset
        builder.append(text)
        end = builder.offset
        _annotate(builder, item, start, end, resolve_mention)
    return builder.build()


def _annotate(builder, item, start, end, resolve_mention) -> None:
    annotations = item.get("annotations") or {}
    for name, mark_type in _ANNOTATION_MARKS.items():
        if annotations.get(name):
            builder.marks.append(Mark(start=start, end=end, type=mark_type))

    color = annotations.get("color") or DEFAULT_COLOR
    if color != DEFAULT_COLOR:
        if color.endswith(_BACKGROUND_SUFFIX):
            builder.marks.append(Mark(
                start=start, end=end, type=MarkType.BACKGROUND_COLOR,
                param=map_color(color[: -len(_BACKGROUND_SUFFIX)]),
            ))
        else:
            builder.marks.append(Mark(
                start=start, end=end, type=MarkType.TEXT_COLOR, param=map_color(color),
            ))

    if item.get("type") == "mention" and resolve_mention is not None:
        target = resolve_mention(item.get("mention") or {})
        if target:
            builder.marks.append(Mark(start=start, end=end, type=MarkType.MENTION, param=target))
            return

    href = item.get("href")
    if href:
        builder.marks.append(Mark(start=start, end=end, type=MarkType.LINK, param=href))
