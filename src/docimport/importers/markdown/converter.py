"""Markdown importer: a file, a directory tree or a zip archive of ``.md`` pages.

Conversion runs in passes over the whole file set of one input path:

1. parse every ``.md`` file and index every other entry by logical name;
2. rewrite links against the completed index (page links, mentions,
   file blocks, bookmarks);
3. group pages nobody links to under an "Unsorted" heading on the page
   whose stem directory holds them;
4. copy referenced binaries to temporary files for upload.
"""

from __future__ import annotations

import os
import posixpath
import shutil
import tempfile

from docimport.config import ImportConfig
from docimport.converter.md_to_blocks import MarkdownToBlocks
from docimport.errors import ConvertError, NoObjectsToImportError, SourceError
from docimport.importers.base import Converter
from docimport.importers.root_collection import build_root_collection
from docimport.models import (
    Block,
    DetailKey,
    File,
    ImportRequest,
    Link,
    MarkType,
    ObjectKind,
    ObjectType,
    Response,
    Snapshot,
    Text,
    TextStyle,
)
from docimport.observability import NoopMetricsHook, get_logger
from docimport.progress import Progress
from docimport.source import get_source
from docimport.utils.ids import new_block_id, new_object_id
from docimport.utils.text import is_whole_line
from docimport.utils.uri import is_remote, validate_uri

from .file_info import CSV_EXTENSION, FileInfo
from .links import resolve_link, to_bookmark, to_file, to_mention, to_page_link

log = get_logger("docimport.markdown")

NAME = "markdown"
ROOT_COLLECTION_NAME = "Markdown Import"
# parse, rewrite links, create objects
NUMBER_OF_STAGES = 3
UNSORTED_HEADING = "Unsorted"


class MarkdownConverter(Converter):
    def __init__(self, config: ImportConfig | None = None, metrics=None) -> None:
        self._config = config or ImportConfig()
        if metrics is None:
            metrics = self._config.metrics
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    def name(self) -> str:
        return NAME

    def get_snapshots(
        self,
        request: ImportRequest,
        progress: Progress,
    ) -> tuple[Response | None, ConvertError | None]:
        if not request.paths:
            return None, None

        progress.set_progress_message("Start creating snapshots from files")
        errors = ConvertError()
        snapshots: list[Snapshot] = []
        for path in request.paths:
            try:
                with get_source(path) as source:
                    snapshots.extend(self._convert_path(path, source, progress, request, errors))
            except SourceError as exc:
                log.warning(
                    "failed to read markdown source",
                    extra={"extra_fields": {"op": "markdown_snapshots", "path": path, "error": str(exc)}},
                )
                errors.add(path, exc)
            if errors.should_abort(request.mode):
                return None, errors

        if not snapshots:
            return None, None if errors.is_empty() else errors

        snapshots.append(build_root_collection(ROOT_COLLECTION_NAME, [s.id for s in snapshots]))
        self._metrics.increment(
            "docimport.snapshots_total", value=len(snapshots), tags={"converter": NAME},
        )
        return Response(snapshots=snapshots), None if errors.is_empty() else errors

    # -- per input path ----------------------------------------------------

    def _convert_path(self, path, source, progress, request, errors) -> list[Snapshot]:
        readers = source.get_file_readers()
        files: dict[str, FileInfo] = {}
        for name, opener in readers.items():
            files[name] = FileInfo(
                name=name,
                source=path if name == os.path.basename(path) else posixpath.join(path, name),
                opener=opener,
            )

        pages = [f for f in files.values() if f.is_markdown]
        if not pages:
            errors.add(path, NoObjectsToImportError(context={"path": path}))
            return []
        progress.add_total(NUMBER_OF_STAGES * len(pages))

        parser = MarkdownToBlocks()
        for info in pages:
            progress.try_step(1)
            try:
                with info.opener() as stream:
                    markdown = stream.read().decode("utf-8", errors="replace")
                info.blocks = parser.convert(markdown)
            except (OSError, ValueError) as exc:
                log.warning(
                    "failed to parse markdown file",
                    extra={"extra_fields": {"op": "markdown_parse", "file": info.name, "error": str(exc)}},
                )
                self._metrics.increment("docimport.convert_errors_total", tags={"converter": NAME})
                errors.add(info.source, exc)
                if errors.should_abort(request.mode):
                    return []
                continue
            info.page_id = new_object_id()

        pages = [f for f in pages if f.page_id]
        for info in pages:
            progress.try_step(1)
            self._rewrite_links(info, files)

        for info in pages:
            self._group_orphans(info, files)

        temp_dir = tempfile.mkdtemp(prefix="docimport-", dir=self._config.temp_dir)
        snapshots: list[Snapshot] = []
        for info in pages:
            try:
                self._materialize_files(info, files, temp_dir)
            except OSError as exc:
                log.warning(
                    "failed to extract referenced file",
                    extra={"extra_fields": {"op": "markdown_files", "file": info.name, "error": str(exc)}},
                )
                errors.add(info.source, exc)
                if errors.should_abort(request.mode):
                    shutil.rmtree(temp_dir, ignore_errors=True)
                    return []
            snapshots.append(Snapshot(
                id=info.page_id,
                file_name=info.name,
                kind=ObjectKind.PAGE,
                blocks=info.blocks,
                details={
                    DetailKey.NAME: info.title,
                    DetailKey.SOURCE: info.source,
                    DetailKey.IS_FAVORITE: info.is_root_file,
                },
                object_types=[ObjectType.PAGE],
            ))
        if not os.listdir(temp_dir):
            os.rmdir(temp_dir)
        return snapshots

    # -- link rewriting ----------------------------------------------------

    def _rewrite_links(self, info: FileInfo, files: dict[str, FileInfo]) -> None:
        for block in info.blocks:
            content = block.content
            if isinstance(content, File):
                self._link_file(info, block, files)
                continue
            if not isinstance(content, Text):
                continue
            links = [m for m in content.marks if m.type == MarkType.LINK]
            if len(links) == 1:
                self._rewrite_text_block(info, block, links[0], files)
                continue
            for mark in links:
                target = files.get(resolve_link(mark.param, info.directory))
                if target is not None and target.is_markdown and target.page_id:
                    to_mention(content, mark.param, target.page_id)
                    target.has_inbound_links = True

    def _rewrite_text_block(self, info, block, mark, files) -> None:
        text: Text = block.content
        url = mark.param
        whole_line = is_whole_line(text.text, mark.start, mark.end)
        target = files.get(resolve_link(url, info.directory))

        if target is None:
            if whole_line and not block.children_ids:
                to_bookmark(block, url)
            return

        target.has_inbound_links = True
        if target.is_markdown:
            if not target.page_id:
                return
            if whole_line and not block.children_ids:
                to_page_link(block, target.page_id)
            else:
                to_mention(text, url, target.page_id)
            return

        if target.extension == CSV_EXTENSION:
            _mark_csv_pages(target, files)
        if block.children_ids:
            return
        to_file(block, target.name)

    def _link_file(self, info: FileInfo, block: Block, files: dict[str, FileInfo]) -> None:
        """Point image blocks at the indexed entry they reference."""
        content: File = block.content
        if is_remote(content.source) or validate_uri(content.source):
            return
        target = files.get(resolve_link(content.source, info.directory))
        if target is None:
            log.debug(
                "image source not found in import",
                extra={"extra_fields": {"op": "markdown_links", "file": info.name, "source": content.source}},
            )
            return
        target.has_inbound_links = True
        content.source = target.name

    # -- orphans -----------------------------------------------------------

    def _group_orphans(self, info: FileInfo, files: dict[str, FileInfo]) -> None:
        orphans = [
            f for f in files.values()
            if f.is_markdown and f.page_id and not f.has_inbound_links
            and f.directory == info.stem_dir
        ]
        if not orphans:
            return
        info.blocks.append(Block(
            id=new_block_id(),
            content=Text(text=UNSORTED_HEADING, style=TextStyle.HEADER3),
        ))
        for orphan in sorted(orphans, key=lambda f: f.name):
            info.blocks.append(Block(id=new_block_id(), content=Link(target_block_id=orphan.page_id)))
            orphan.has_inbound_links = True

    # -- binaries ----------------------------------------------------------

    def _materialize_files(self, info: FileInfo, files: dict[str, FileInfo], temp_dir: str) -> None:
        """Copy every referenced entry to *temp_dir*; blocks get the temp path."""
        for block in info.blocks:
            content = block.content
            if not isinstance(content, File) or content.temporary:
                continue
            target = files.get(content.source)
            if target is None or target.opener is None or target.is_markdown:
                continue
            destination = os.path.join(
                temp_dir, f"{block.id}_{posixpath.basename(target.name)}",
            )
            with target.opener() as src, open(destination, "wb") as dst:
                shutil.copyfileobj(src, dst)
            content.source = destination
            content.temporary = True
            if not content.name:
                content.name = posixpath.basename(target.name)


def _mark_csv_pages(csv: FileInfo, files: dict[str, FileInfo]) -> None:
    """Pages under ``<csv-stem>/`` belong to the CSV's database."""
    for other in files.values():
        if other.is_markdown and other.name.startswith(csv.stem_dir + "/"):
            other.has_inbound_links = True
