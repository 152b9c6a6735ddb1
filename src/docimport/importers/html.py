"""HTML importer: one page per ``.html`` file plus a root collection."""

from __future__ import annotations

import os

from docimport.converter.html_parser import html_to_blocks
from docimport.errors import ConvertError, NoObjectsToImportError
from docimport.importers.base import Converter
from docimport.importers.root_collection import build_root_collection
from docimport.models import (
    DetailKey,
    ImportRequest,
    ObjectKind,
    ObjectType,
    Response,
    Snapshot,
)
from docimport.observability import NoopMetricsHook, get_logger
from docimport.progress import Progress
from docimport.utils.ids import new_object_id

log = get_logger("docimport.html")

NAME = "html"
ROOT_COLLECTION_NAME = "HTML Import"
# one pass to build snapshots, one for the importer to create objects
NUMBER_OF_STAGES = 2
HTML_EXTENSION = ".html"


class HTMLConverter(Converter):
    def __init__(self, metrics=None) -> None:
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    def name(self) -> str:
        return NAME

    def get_snapshots(
        self,
        request: ImportRequest,
        progress: Progress,
    ) -> tuple[Response | None, ConvertError | None]:
        paths = request.paths
        if not paths:
            return None, None

        progress.add_total(NUMBER_OF_STAGES * len(paths))
        progress.set_progress_message("Start creating snapshots from files")

        errors = ConvertError()
        snapshots: list[Snapshot] = []
        for path in paths:
            progress.try_step(1)
            if os.path.splitext(path)[1].lower() != HTML_EXTENSION:
                log.debug(
                    "skipping file without html extension",
                    extra={"extra_fields": {"op": "html_snapshots", "path": path}},
                )
                errors.add(path, NoObjectsToImportError(context={"path": path}))
                continue
            try:
                with open(path, "rb") as f:
                    blocks = html_to_blocks(f.read())
            except (OSError, ValueError) as exc:
                log.warning(
                    "failed to convert html file",
                    extra={"extra_fields": {"op": "html_snapshots", "path": path, "error": str(exc)}},
                )
                self._metrics.increment("docimport.convert_errors_total", tags={"converter": NAME})
                errors.add(path, exc)
                if errors.should_abort(request.mode):
                    return None, errors
                continue

            snapshots.append(Snapshot(
                id=new_object_id(),
                file_name=path,
                kind=ObjectKind.PAGE,
                blocks=blocks,
                details=page_details(path),
                object_types=[ObjectType.PAGE],
            ))

        if not snapshots:
            return None, None if errors.is_empty() else errors

        snapshots.append(build_root_collection(ROOT_COLLECTION_NAME, [s.id for s in snapshots]))
        self._metrics.increment(
            "docimport.snapshots_total", value=len(snapshots), tags={"converter": NAME},
        )
        return Response(snapshots=snapshots), None if errors.is_empty() else errors


def page_details(path: str) -> dict:
    """Details for a page built from *path*; the name is the file's stem.

    Document ``<title>`` elements are not consulted.
    """
    title = os.path.splitext(os.path.basename(path))[0]
    return {
        DetailKey.NAME: title,
        DetailKey.SOURCE: path,
        DetailKey.IS_FAVORITE: True,
    }
