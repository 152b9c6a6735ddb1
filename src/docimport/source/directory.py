"""Plain files and directory trees."""

from __future__ import annotations

import functools
import os
from collections.abc import Iterable

from docimport.errors import SourceError

from .base import Opener, Source, has_extension


def _open(path: str):
    return open(path, "rb")


class FileSource(Source):
    """A single file; its logical name is the file's base name."""

    def get_file_readers(
        self,
        extensions: Iterable[str] | None = None,
    ) -> dict[str, Opener]:
        if not os.path.isfile(self.path):
            raise SourceError(
                f"file does not exist: {self.path}", context={"path": self.path},
            )
        name = os.path.basename(self.path)
        if not has_extension(name, extensions):
            return {}
        return {name: functools.partial(_open, self.path)}


class DirectorySource(Source):
    """Every file below a directory, named relative to the directory."""

    def get_file_readers(
        self,
        extensions: Iterable[str] | None = None,
    ) -> dict[str, Opener]:
        if not os.path.isdir(self.path):
            raise SourceError(
                f"directory does not exist: {self.path}", context={"path": self.path},
            )
        readers: dict[str, Opener] = {}
        for root, dirs, files in os.walk(self.path):
            dirs.sort()
            for file_name in sorted(files):
                full = os.path.join(root, file_name)
                rel = os.path.relpath(full, self.path).replace(os.sep, "/")
                if has_extension(rel, extensions):
                    readers[rel] = functools.partial(_open, full)
        return readers
