"""Zip archives.

macOS resource forks (``__MACOSX/``) are skipped.  Archives created by
compressing a folder repeat the folder name as the first path component;
when it matches the archive's base name it is stripped so names look the
same as for an unpacked directory.
"""

from __future__ import annotations

import functools
import os
import posixpath
import threading
import zipfile
from collections.abc import Iterable

from docimport.errors import SourceError
from docimport.observability import get_logger

from .base import Opener, Source, has_extension

log = get_logger("docimport.source.zip")

_MACOS_METADATA_PREFIX = "__MACOSX/"


class ZipSource(Source):
    def __init__(self, path: str) -> None:
        super().__init__(path)
        self._archive: zipfile.ZipFile | None = None
        self._lock = threading.Lock()

    def _open_archive(self) -> zipfile.ZipFile:
        with self._lock:
            if self._archive is None:
                try:
                    self._archive = zipfile.ZipFile(self.path)
                except (OSError, zipfile.BadZipFile) as exc:
                    raise SourceError(
                        f"cannot open archive {self.path}: {exc}",
                        context={"path": self.path},
                        cause=exc,
                    ) from exc
            return self._archive

    def get_file_readers(
        self,
        extensions: Iterable[str] | None = None,
    ) -> dict[str, Opener]:
        archive = self._open_archive()
        stem = os.path.splitext(os.path.basename(self.path))[0]
        readers: dict[str, Opener] = {}
        for info in archive.infolist():
            if info.is_dir() or info.filename.startswith(_MACOS_METADATA_PREFIX):
                continue
            name = posixpath.normpath(info.filename)
            if name.startswith(stem + "/"):
                name = name[len(stem) + 1:]
            if not has_extension(name, extensions):
                log.debug(
                    "skipping archive entry with unexpected extension",
                    extra={"extra_fields": {"op": "zip_readers", "entry": info.filename}},
                )
                continue
            readers[name] = functools.partial(archive.open, info)
        return readers

    def close(self) -> None:
        with self._lock:
            if self._archive is not None:
                self._archive.close()
                self._archive = None
