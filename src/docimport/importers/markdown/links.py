"""Block rewrites applied while resolving Markdown links."""

from __future__ import annotations

import posixpath
from urllib.parse import unquote

from docimport.models import Block, Bookmark, File, FileType, Link, LinkStyle, MarkType, Text
from docimport.utils.uri import validate_uri

_IMAGE_FORMATS = frozenset({"jpg", "jpeg", "png", "gif", "webp"})
_VIDEO_FORMATS = frozenset({"mp4", "m4v"})
_AUDIO_FORMATS = frozenset({"mp3", "ogg", "wav", "m4a", "flac"})
_PDF_FORMAT = "pdf"


def file_type_for(name: str) -> FileType:
    """Pick the file block type from *name*'s extension."""
    ext = posixpath.splitext(name)[1][1:].lower()
    if ext in _IMAGE_FORMATS:
        return FileType.IMAGE
    if ext in _VIDEO_FORMATS:
        return FileType.VIDEO
    if ext in _AUDIO_FORMATS:
        return FileType.AUDIO
    if ext == _PDF_FORMAT:
        return FileType.PDF
    return FileType.FILE


def resolve_link(url: str, directory: str) -> str:
    """Map a link as written in a file under *directory* to a logical path.

    URIs are returned unchanged.  Relative targets are percent-decoded and
    joined with *directory*; a leading ``/`` anchors at the import root.
    """
    if not url or validate_uri(url):
        return url
    target = unquote(url.split("#", 1)[0])
    if target.startswith("/"):
        target = target.lstrip("/")
    else:
        target = posixpath.join(directory, target)
    return posixpath.normpath(target) if target else url


def to_page_link(block: Block, target_id: str) -> None:
    block.content = Link(target_block_id=target_id, style=LinkStyle.PAGE)


def to_mention(text: Text, url: str, target_id: str) -> None:
    """Turn every link mark pointing at *url* into a mention of *target_id*."""
    for mark in text.marks:
        if mark.type == MarkType.LINK and mark.param == url:
            mark.type = MarkType.MENTION
            mark.param = target_id


def to_bookmark(block: Block, url: str) -> bool:
    """Replace *block* by a bookmark when *url* is a valid URI."""
    if not validate_uri(url):
        return False
    block.content = Bookmark(url=url)
    return True


def to_file(block: Block, name: str) -> None:
    block.content = File(source=name, type=file_type_for(name), name=posixpath.basename(name))
