"""Source readers: turn an import path into named byte streams.

A reader maps *logical names* (paths relative to the import root, using
``/`` separators) to zero-argument openers.  Streams are opened lazily by
the caller, who is responsible for closing them; the reader itself must be
closed (or used as a context manager) to release archive handles.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import BinaryIO

Opener = Callable[[], BinaryIO]


def has_extension(name: str, extensions: Iterable[str] | None) -> bool:
    """Case-insensitive extension filter; ``None`` accepts everything."""
    if extensions is None:
        return True
    ext = os.path.splitext(name)[1].lower()
    return ext in {e.lower() for e in extensions}


class Source(ABC):
    """Base class for every import source."""

    def __init__(self, path: str) -> None:
        self.path = path

    @abstractmethod
    def get_file_readers(
        self,
        extensions: Iterable[str] | None = None,
    ) -> dict[str, Opener]:
        """Return ``logical name -> opener`` for entries matching *extensions*.

        Raises
        ------
        SourceError
            When the path cannot be listed or the archive is unreadable.
        """

    def count_files(self, extensions: Iterable[str] | None = None) -> int:
        return len(self.get_file_readers(extensions))

    def close(self) -> None:
        """Release any handle held on the underlying path."""

    def __enter__(self) -> Source:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
