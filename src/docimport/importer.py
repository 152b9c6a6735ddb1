"""Import dispatcher.

:class:`Importer` picks the converter for a request, creates the produced
objects through the host :class:`~docimport.host.ObjectStore`, settles
relations with :class:`~docimport.reconciler.RelationReconciler` and
uploads embedded binaries with :class:`~docimport.reconciler.FileSyncer`.

Usage::

    from docimport import Importer, ImportRequest, ImportType, Progress

    importer = Importer(None, store, files)
    result = importer.import_(
        ImportRequest(type=ImportType.MARKDOWN, paths=["notes.zip"]),
        Progress(),
    )
    print(result.root_collection_id, result.error)
"""

from __future__ import annotations

import time

from docimport.config import ImportConfig
from docimport.errors import ConvertError, NoObjectsToImportError
from docimport.host import FileStore, ObjectStore
from docimport.importers.registry import ConverterRegistry, default_registry
from docimport.models import (
    ImportRequest,
    ImportResult,
    ObjectKind,
    ObjectType,
    Response,
    Snapshot,
)
from docimport.observability import NoopMetricsHook, get_logger
from docimport.progress import Progress
from docimport.reconciler import FileSyncer, RelationReconciler

log = get_logger("docimport.importer")


class Importer:
    """Run one import request end to end.

    Parameters
    ----------
    registry:
        Converter lookup; ``None`` uses
        :func:`~docimport.importers.default_registry`.
    object_store:
        Host persistence for pages, collections and sub-objects.
    file_store:
        Host storage for embedded binaries.
    config:
        Passed to every converter; its ``metrics`` hook is used here too.
    """

    def __init__(
        self,
        registry: ConverterRegistry | None,
        object_store: ObjectStore,
        file_store: FileStore,
        config: ImportConfig | None = None,
    ) -> None:
        self._registry = registry if registry is not None else default_registry()
        self._objects = object_store
        self._files = file_store
        self._config = config or ImportConfig()
        metrics = self._config.metrics
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    def import_(self, request: ImportRequest, progress: Progress) -> ImportResult:
        """Convert and persist *request*.

        Returns
        -------
        ImportResult
            IDs of the created pages and collections, the root collection
            ID, and the classified error (``None`` on full success).

        Raises
        ------
        DocImportError
            ``VALIDATION_ERROR`` when no converter handles ``request.type``.
        CancelError
            When *progress* is cancelled.
        """
        converter = self._registry.get(request.type, self._config)
        started = time.monotonic()
        log.info(
            "import started",
            extra={"extra_fields": {"op": "import", "type": request.type.value, "mode": request.mode.value}},
        )

        response, errors = converter.get_snapshots(request, progress)
        aggregate = ConvertError()
        aggregate.merge(errors)
        if response is None or response.is_empty():
            error = aggregate.get_result_error(request.type)
            if error is None:
                error = NoObjectsToImportError(context={"import_type": request.type.value})
            return ImportResult(error=error)
        if aggregate.should_abort(request.mode):
            return ImportResult(error=aggregate.get_result_error(request.type))

        result = self._create(response, request, progress, aggregate)
        result.error = aggregate.get_result_error(request.type)
        self._metrics.timing(
            "docimport.import_duration_ms",
            (time.monotonic() - started) * 1000,
            tags={"converter": converter.name()},
        )
        log.info(
            "import finished",
            extra={"extra_fields": {
                "op": "import", "type": request.type.value,
                "objects": len(result.object_ids), "failed": len(aggregate.errors),
            }},
        )
        return result

    def _create(
        self,
        response: Response,
        request: ImportRequest,
        progress: Progress,
        aggregate: ConvertError,
    ) -> ImportResult:
        progress.set_progress_message("Create objects")
        reconciler = RelationReconciler(self._objects, self._files, self._metrics)
        syncer = FileSyncer(self._objects, self._files, self._metrics)

        sub_objects = [s for s in response.snapshots if s.kind == ObjectKind.SUB_OBJECT]
        reconciler.create_sub_objects(sub_objects)

        result = ImportResult()
        root_id = _root_collection_id(response)
        created: dict[str, str] = {}
        for snapshot in response.snapshots:
            if snapshot.kind == ObjectKind.SUB_OBJECT:
                continue
            progress.try_step(1)
            object_id = self._create_object(snapshot, aggregate)
            if object_id is None:
                if aggregate.should_abort(request.mode):
                    break
                continue
            created[snapshot.id] = object_id
            result.object_ids.append(object_id)
            if snapshot.id == root_id:
                result.root_collection_id = object_id

        by_id = {s.id: s for s in response.snapshots}
        for snapshot_id, relations in response.relations.items():
            object_id = created.get(snapshot_id)
            if object_id is not None and relations:
                reconciler.reconcile(object_id, by_id[snapshot_id], relations)

        for snapshot_id, object_id in created.items():
            syncer.sync(object_id, by_id[snapshot_id])
        return result

    def _create_object(self, snapshot: Snapshot, aggregate: ConvertError) -> str | None:
        try:
            return self._objects.create_object(snapshot) or snapshot.id
        except Exception as exc:
            log.warning(
                "failed to create object",
                extra={"extra_fields": {
                    "op": "create_object", "snapshot_id": snapshot.id,
                    "file_name": snapshot.file_name, "error": str(exc),
                }},
            )
            aggregate.add(snapshot.file_name or snapshot.id, exc)
            return None


def _root_collection_id(response: Response) -> str | None:
    """Converters append the root collection after everything else."""
    for snapshot in reversed(response.snapshots):
        if ObjectType.COLLECTION in snapshot.object_types:
            return snapshot.id
    return None
