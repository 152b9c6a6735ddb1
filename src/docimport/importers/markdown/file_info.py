"""Per-file state shared by the Markdown importer passes."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field

from docimport.models import Block
from docimport.source import Opener

MARKDOWN_EXTENSION = ".md"
CSV_EXTENSION = ".csv"


@dataclass
class FileInfo:
    """One entry of a Markdown import, page or binary.

    Attributes
    ----------
    name:
        Logical path relative to the import root (``/`` separated).
    source:
        Value written to the page's ``source`` detail.
    opener:
        Re-opens the raw bytes; kept for binaries that may be uploaded.
    page_id:
        Snapshot ID, allocated for Markdown files only.
    has_inbound_links:
        Set once any page links here; orphans are grouped under their
        parent page otherwise.
    """

    name: str
    source: str
    opener: Opener | None = None
    page_id: str = ""
    blocks: list[Block] = field(default_factory=list)
    has_inbound_links: bool = False

    @property
    def extension(self) -> str:
        return posixpath.splitext(self.name)[1].lower()

    @property
    def is_markdown(self) -> bool:
        return self.extension == MARKDOWN_EXTENSION

    @property
    def is_root_file(self) -> bool:
        """True when the file sits directly in the import root."""
        return "/" not in self.name

    @property
    def title(self) -> str:
        return posixpath.splitext(posixpath.basename(self.name))[0]

    @property
    def stem_dir(self) -> str:
        """Directory holding this file's dependents: ``a/b.md`` -> ``a/b``."""
        return posixpath.splitext(self.name)[0]

    @property
    def directory(self) -> str:
        return posixpath.dirname(self.name)
