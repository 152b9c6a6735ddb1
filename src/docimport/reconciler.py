"""Reconcile produced relations and files with the host store.

Converters invent relation keys and option IDs without knowing what the
host already holds.  After the objects are created,
:class:`RelationReconciler` settles every relation on a final key
(reused when a relation with the same name and format exists), resolves
option names to option IDs, uploads file values and covers, and points
relation blocks at the final keys.  :class:`FileSyncer` uploads the
binaries behind file blocks.

Failures here never abort an import: they are logged and the edge (or
file) is dropped.
"""

from __future__ import annotations

import os
import threading
from typing import Any

from docimport.errors import UploadError
from docimport.host import FileStore, ObjectStore
from docimport.importers.notion.context import (
    RelationDefinition,
    option_snapshot,
    relation_snapshot,
)
from docimport.models import (
    LIST_FORMATS,
    Block,
    DetailKey,
    File,
    ObjectType,
    Relation,
    RelationBlock,
    RelationFormat,
    RelationOption,
    Snapshot,
)
from docimport.observability import NoopMetricsHook, get_logger
from docimport.utils.ids import new_block_id, new_option_id, new_relation_key
from docimport.utils.uri import is_remote

log = get_logger("docimport.reconciler")


class RelationReconciler:
    """Settle relation keys, options and file values for one import.

    Parameters
    ----------
    object_store:
        Host persistence.
    file_store:
        Host file storage.
    metrics:
        Optional :class:`~docimport.observability.MetricsHook`.
    """

    def __init__(self, object_store: ObjectStore, file_store: FileStore, metrics=None) -> None:
        self._objects = object_store
        self._files = file_store
        self._metrics = metrics if metrics is not None else NoopMetricsHook()
        self._lock = threading.Lock()
        # converter key -> final key
        self._keys: dict[str, str] = {}
        # (name, format) -> final key, for relations settled in this run
        self._created: dict[tuple[str, RelationFormat], str] = {}
        # final key -> option name -> option ID, for options created in this run
        self._options: dict[str, dict[str, str]] = {}

    # -- sub-objects -------------------------------------------------------

    def create_sub_objects(self, snapshots: list[Snapshot]) -> list[str]:
        """Create relation and option snapshots that the host lacks.

        Relations come first so option snapshots can be moved onto the
        final relation key.  Returns the IDs of the created sub-objects.
        """
        created: list[str] = []
        relations = [s for s in snapshots if ObjectType.RELATION in s.object_types]
        options = [s for s in snapshots if ObjectType.RELATION_OPTION in s.object_types]
        for snapshot in relations:
            details = snapshot.details
            old_key = details.get(DetailKey.RELATION_KEY, "")
            name = details.get(DetailKey.NAME, "")
            format = RelationFormat(details.get(DetailKey.RELATION_FORMAT, RelationFormat.SHORT_TEXT))
            key = self._reuse(name, format)
            if key is None:
                key = self._create_relation(snapshot)
                if key is None:
                    continue
                created.append(snapshot.id)
            with self._lock:
                self._keys[old_key] = key
                self._created[(name, format)] = key
        for snapshot in options:
            option_id = self._create_option_snapshot(snapshot)
            if option_id is not None:
                created.append(option_id)
        return created

    def _reuse(self, name: str, format: RelationFormat) -> str | None:
        """Key of a relation settled in this run or already in the host."""
        with self._lock:
            key = self._created.get((name, format))
        if key is not None:
            return key
        try:
            return self._objects.find_relation(name, format)
        except Exception as exc:
            log.warning(
                "relation lookup failed",
                extra={"extra_fields": {"op": "find_relation", "relation": name, "error": str(exc)}},
            )
            return None

    def _create_relation(self, snapshot: Snapshot) -> str | None:
        try:
            key = self._objects.create_sub_object(snapshot)
        except Exception as exc:
            log.warning(
                "failed to create relation",
                extra={"extra_fields": {"op": "create_relation", "relation": snapshot.name, "error": str(exc)}},
            )
            return None
        self._metrics.increment("docimport.relations_created_total")
        return key or snapshot.details.get(DetailKey.RELATION_KEY, "")

    def _create_option_snapshot(self, snapshot: Snapshot) -> str | None:
        details = snapshot.details
        name = details.get(DetailKey.NAME, "")
        with self._lock:
            key = self._keys.get(details.get(DetailKey.RELATION_KEY, ""))
        if key is None:
            # the relation was not settled; options follow its edges later
            return None
        if self._known_option(key, name) is not None:
            return None
        details[DetailKey.RELATION_KEY] = key
        try:
            option_id = self._objects.create_sub_object(snapshot) or snapshot.id
        except Exception as exc:
            log.warning(
                "failed to create relation option",
                extra={"extra_fields": {"op": "create_option", "relation_key": key, "option": name, "error": str(exc)}},
            )
            return None
        with self._lock:
            self._options.setdefault(key, {})[name] = option_id
        return option_id

    # -- per object --------------------------------------------------------

    def reconcile(self, object_id: str, snapshot: Snapshot, relations: list[Relation]) -> list[str]:
        """Apply *relations* of *snapshot* to the created object *object_id*.

        Returns the final relation keys that were applied.  An edge whose
        key is rejected by the host is retried once with a freshly created
        relation; if that fails too the edge is dropped.
        """
        applied: list[str] = []
        for relation in relations:
            if relation.name.lower() == DetailKey.NAME:
                continue
            key = self._settle_key(relation)
            if key is None:
                continue
            value = snapshot.details.pop(relation.key, None)
            try:
                self._apply(object_id, snapshot, relation, key, value)
            except Exception as exc:
                log.warning(
                    "failed to apply relation, creating a new one",
                    extra={"extra_fields": {
                        "op": "reconcile_relation", "object_id": object_id,
                        "relation": relation.name, "error": str(exc),
                    }},
                )
                snapshot.details.pop(key, None)
                key = self._create_relation(_relation_definition(relation.name, relation.format))
                if key is None:
                    continue
                try:
                    self._apply(object_id, snapshot, relation, key, value)
                except Exception as retry_exc:
                    log.warning(
                        "dropping relation",
                        extra={"extra_fields": {
                            "op": "reconcile_relation", "object_id": object_id,
                            "relation": relation.name, "error": str(retry_exc),
                        }},
                    )
                    snapshot.details.pop(key, None)
                    continue
            applied.append(key)
        self._sync_cover(object_id, snapshot)
        return applied

    def _settle_key(self, relation: Relation) -> str | None:
        with self._lock:
            key = self._keys.get(relation.key)
        if key is not None:
            return key
        key = self._reuse(relation.name, relation.format)
        if key is None:
            key = self._create_relation(_relation_definition(relation.name, relation.format))
            if key is None:
                return None
        with self._lock:
            self._keys[relation.key] = key
            self._created[(relation.name, relation.format)] = key
        return key

    def _apply(self, object_id: str, snapshot: Snapshot, relation: Relation, key: str, value: Any) -> None:
        if isinstance(value, list) and (relation.format in LIST_FORMATS or relation.options):
            value = self._resolve_options(key, value, relation.options)
        if relation.format == RelationFormat.FILE:
            value = self._upload_values(value)
        snapshot.details[key] = value

        self._objects.add_extra_relations(object_id, [key])
        self._objects.set_details(object_id, {key: value})
        if relation.block_id:
            self._replace_relation_block(object_id, snapshot, relation.block_id, key)

    def _resolve_options(self, key: str, names: list[Any], options: list[RelationOption]) -> list[str]:
        """Option IDs for *names*, creating the options the host lacks."""
        colors = {option.name: option.color for option in options}
        ids: list[str] = []
        for name in names:
            option_id = self._known_option(key, name)
            if option_id is None:
                option_id = self._create_option(key, str(name), colors.get(name, ""))
            if option_id:
                ids.append(option_id)
        return ids

    def _known_option(self, key: str, name: str) -> str | None:
        with self._lock:
            option_id = self._options.get(key, {}).get(name)
        if option_id is not None:
            return option_id
        try:
            existing = self._objects.aggregated_options(key)
        except Exception as exc:
            log.warning(
                "failed to read relation options",
                extra={"extra_fields": {"op": "aggregated_options", "relation_key": key, "error": str(exc)}},
            )
            return None
        return existing.get(name)

    def _create_option(self, key: str, name: str, color: str) -> str:
        snapshot = option_snapshot(new_option_id(), key, name, color)
        option_id = self._objects.create_sub_object(snapshot) or snapshot.id
        with self._lock:
            self._options.setdefault(key, {})[name] = option_id
        return option_id

    def _upload_values(self, value: Any) -> Any:
        """Replace file sources by content hashes; single values stay single."""
        if isinstance(value, str):
            hashes = self._upload_all([value])
            return hashes[0] if hashes else value
        if isinstance(value, list):
            return self._upload_all([v for v in value if isinstance(v, str)])
        return value

    def _upload_all(self, sources: list[str]) -> list[str]:
        hashes: list[str] = []
        for source in sources:
            if not source:
                continue
            if self._known_hash(source):
                hashes.append(source)
                continue
            try:
                hashes.append(upload(self._files, source))
            except UploadError as exc:
                log.warning(
                    "file upload failed, keeping source",
                    extra={"extra_fields": {"op": "upload_file", "source": source, "error": str(exc)}},
                )
                hashes.append(source)
                continue
            self._metrics.increment("docimport.files_uploaded_total")
        return hashes

    def _known_hash(self, source: str) -> bool:
        try:
            return bool(self._files.get_by_hash(source))
        except Exception as exc:
            log.warning(
                "failed to look up file hash, uploading",
                extra={"extra_fields": {"op": "get_by_hash", "source": source, "error": str(exc)}},
            )
            return False

    def _sync_cover(self, object_id: str, snapshot: Snapshot) -> None:
        cover = snapshot.details.get(DetailKey.COVER_ID)
        if not cover or not isinstance(cover, str):
            return
        cover_hash = self._upload_values(cover)
        if cover_hash == cover:
            return
        snapshot.details[DetailKey.COVER_ID] = cover_hash
        try:
            self._objects.set_details(object_id, {DetailKey.COVER_ID: cover_hash})
        except Exception as exc:
            log.warning(
                "failed to set cover",
                extra={"extra_fields": {"op": "sync_cover", "object_id": object_id, "error": str(exc)}},
            )

    def _replace_relation_block(self, object_id: str, snapshot: Snapshot, block_id: str, key: str) -> None:
        old = snapshot.block_by_id(block_id)
        if old is None or not isinstance(old.content, RelationBlock):
            return
        new = Block(id=new_block_id(), content=RelationBlock(key=key), children_ids=list(old.children_ids))
        self._objects.replace_block(object_id, block_id, new)
        index = snapshot.blocks.index(old)
        snapshot.blocks[index] = new
        for block in snapshot.blocks:
            block.children_ids = [new.id if cid == block_id else cid for cid in block.children_ids]


class FileSyncer:
    """Upload the binaries behind file blocks and record their hashes."""

    def __init__(self, object_store: ObjectStore, file_store: FileStore, metrics=None) -> None:
        self._objects = object_store
        self._files = file_store
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    def sync(self, object_id: str, snapshot: Snapshot) -> list[UploadError]:
        """Upload every file block of *snapshot*.

        Temporary sources are removed whether or not the upload succeeded.
        Returns the failed uploads; the affected blocks keep their source.
        """
        failures: list[UploadError] = []
        for block in snapshot.blocks:
            content = block.content
            if not isinstance(content, File) or content.hash or not content.source:
                continue
            try:
                content.hash = upload(self._files, content.source)
                self._replace_file_block(object_id, block)
                self._metrics.increment("docimport.files_uploaded_total")
            except UploadError as exc:
                log.warning(
                    "failed syncing file",
                    extra={"extra_fields": {
                        "op": "sync_file", "object_id": object_id,
                        "block_id": block.id, "error": str(exc),
                    }},
                )
                failures.append(exc)
            finally:
                if content.temporary:
                    _remove(content.source)
        return failures

    def _replace_file_block(self, object_id: str, block: Block) -> None:
        try:
            self._objects.replace_block(object_id, block.id, block)
        except Exception as exc:
            block.content.hash = ""
            raise UploadError(
                f"failed to store uploaded file {block.content.source}",
                context={"source": block.content.source, "block_id": block.id},
                cause=exc,
            ) from exc


def upload(file_store: FileStore, source: str) -> str:
    """Upload a local path or URL, wrapping failures in :class:`UploadError`."""
    try:
        return file_store.upload(source)
    except UploadError:
        raise
    except Exception as exc:
        kind = "url" if is_remote(source) else "path"
        raise UploadError(
            f"failed to upload {kind} {source}",
            context={"source": source},
            cause=exc,
        ) from exc


def _relation_definition(name: str, format: RelationFormat) -> Snapshot:
    return relation_snapshot(RelationDefinition(key=new_relation_key(), name=name, format=format))


def _remove(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        log.warning(
            "failed to remove temporary file",
            extra={"extra_fields": {"op": "sync_file", "path": path, "error": str(exc)}},
        )


__all__ = ["FileSyncer", "RelationReconciler", "upload"]
