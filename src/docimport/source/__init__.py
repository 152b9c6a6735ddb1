"""Source readers for file based importers."""

from __future__ import annotations

import os

from .base import Opener, Source, has_extension
from .directory import DirectorySource, FileSource
from .zip import ZipSource


def get_source(path: str) -> Source:
    """Pick the reader for *path*: archive, directory, or single file."""
    if os.path.splitext(path)[1].lower() == ".zip":
        return ZipSource(path)
    if os.path.isdir(path):
        return DirectorySource(path)
    return FileSource(path)


__all__ = [
    "DirectorySource",
    "FileSource",
    "Opener",
    "Source",
    "ZipSource",
    "get_source",
    "has_extension",
]
