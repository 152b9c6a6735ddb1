"""Notion importer: every page and database shared with an integration.

Stages, in order:

1. discovery: search (retried) plus database queries for rows search
   missed;
2. databases: one collection snapshot each, sequential;
3. pages: register every page, then convert them on a worker pool;
4. cleanup: links to objects that failed to convert are removed;
5. assembly: fill database collections from parent links and append the
   "Notion Import" root collection.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import httpx

from docimport.config import ImportConfig
from docimport.errors import ConvertError, DocImportError, ErrorCode, NotionError
from docimport.importers.base import Converter
from docimport.importers.root_collection import build_root_collection
from docimport.models import (
    Dataview,
    ImportRequest,
    Link,
    MarkType,
    ObjectKind,
    Relation,
    RelationFormat,
    Response,
    Snapshot,
    Text,
)
from docimport.notion_api import NotionClient, NotionTransport
from docimport.observability import NoopMetricsHook, get_logger
from docimport.progress import Progress

from .context import ImportContext
from .database import DatabaseConverter, parent_id
from .mapper import NOT_FOUND_PAGE_MESSAGE
from .page import PageConverter
from .search import query_missing_pages, search_objects

log = get_logger("docimport.notion")

NAME = "notion"
ROOT_COLLECTION_NAME = "Notion Import"
DATABASE_STAGES = 2
PAGE_STAGES = 3


class NotionConverter(Converter):
    """Convert a Notion workspace reachable with ``request.api_key``.

    Parameters
    ----------
    config:
        Base configuration; the request's API key replaces its token.
    http_transport:
        Optional :class:`httpx.BaseTransport` used instead of the network.
    sleep:
        Used between search retries.
    """

    def __init__(
        self,
        config: ImportConfig | None = None,
        http_transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config or ImportConfig()
        self._http_transport = http_transport
        self._sleep = sleep
        metrics = self._config.metrics
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    def name(self) -> str:
        return NAME

    def get_snapshots(
        self,
        request: ImportRequest,
        progress: Progress,
    ) -> tuple[Response | None, ConvertError | None]:
        errors = ConvertError()
        if not request.api_key:
            errors.add("apiKey", DocImportError(ErrorCode.VALIDATION_ERROR, "notion api key is empty"))
            return None, errors

        config = self._config.with_token(request.api_key)
        client = NotionClient(NotionTransport(config, http_transport=self._http_transport))
        try:
            return self._convert(client, config, request, progress, errors)
        finally:
            client.close()

    def _convert(
        self,
        client: NotionClient,
        config: ImportConfig,
        request: ImportRequest,
        progress: Progress,
        errors: ConvertError,
    ) -> tuple[Response | None, ConvertError | None]:
        progress.set_progress_message("Start searching notion objects")
        try:
            found = search_objects(client, config, sleep=self._sleep)
        except NotionError as exc:
            log.error(
                "notion search failed",
                extra={"extra_fields": {"op": "notion_search", "code": str(exc.code), "error": str(exc)}},
            )
            errors.add("/search", exc)
            return None, errors

        databases = found.databases
        pages = found.pages + query_missing_pages(client, databases, found.pages)
        log.info(
            "notion objects discovered",
            extra={"extra_fields": {"op": "notion_search", "databases": len(databases), "pages": len(pages)}},
        )
        if not databases and not pages:
            return None, None
        progress.set_total(len(databases) * DATABASE_STAGES + len(pages) * PAGE_STAGES)

        context = ImportContext()
        database_snapshots, database_errors = DatabaseConverter(context).convert(
            databases, request.mode, progress,
        )
        errors.merge(database_errors)
        if errors.should_abort(request.mode):
            return None, errors

        page_snapshots, relations, page_errors = PageConverter(client, context, config).convert(
            pages, request.mode, progress,
        )
        errors.merge(page_errors)
        if errors.should_abort(request.mode):
            return None, errors

        snapshots = database_snapshots + page_snapshots
        drop_unresolved_targets(snapshots, relations)
        add_collection_members(snapshots, context, databases + pages)
        members = [s.id for s in snapshots if s.kind != ObjectKind.SUB_OBJECT]
        snapshots.append(build_root_collection(ROOT_COLLECTION_NAME, members))

        self._metrics.increment(
            "docimport.snapshots_total", value=len(snapshots), tags={"converter": NAME},
        )
        if not errors.is_empty():
            self._metrics.increment(
                "docimport.convert_errors_total", value=len(errors.errors), tags={"converter": NAME},
            )
        return Response(snapshots=snapshots, relations=relations), None if errors.is_empty() else errors


def add_collection_members(
    snapshots: list[Snapshot],
    context: ImportContext,
    objects: list[dict[str, Any]],
) -> None:
    """Write pages and databases held by a database into its collection.

    Only objects that produced a snapshot are listed, in discovery order.
    """
    produced = {s.id for s in snapshots}
    by_id = {s.id: s for s in snapshots if s.kind == ObjectKind.COLLECTION}
    local_ids = {**context.notion_database_ids, **context.notion_page_ids}
    for obj in objects:
        collection_id = context.notion_database_ids.get(parent_id(obj))
        member_id = local_ids.get(obj.get("id", ""))
        if collection_id is None or member_id not in produced:
            continue
        collection = by_id.get(collection_id)
        if collection is not None and member_id not in collection.collections:
            collection.collections.append(member_id)


def drop_unresolved_targets(
    snapshots: list[Snapshot],
    relations: dict[str, list[Relation]],
) -> None:
    """Remove references to objects that produced no snapshot.

    Local IDs are allocated before any page task runs, so a page or
    database that later fails leaves links to an ID outside the batch.
    Link and dataview blocks pointing there become the "no access" text
    block.  Mention marks and object relation values naming such an ID
    are dropped.
    """
    produced = {s.id for s in snapshots}
    for snapshot in snapshots:
        for block in snapshot.blocks:
            content = block.content
            if isinstance(content, Link):
                target = content.target_block_id
            elif isinstance(content, Dataview):
                target = content.target_object_id
            else:
                target = ""
            if target and target not in produced:
                log.info(
                    "replacing link to unconverted object",
                    extra={"extra_fields": {"op": "notion_assemble", "snapshot_id": snapshot.id, "target": target}},
                )
                block.content = Text(text=NOT_FOUND_PAGE_MESSAGE)
                continue
            if isinstance(content, Text):
                content.marks = [
                    mark for mark in content.marks
                    if mark.type != MarkType.MENTION or mark.param in produced
                ]

        for relation in relations.get(snapshot.id, []):
            if relation.format != RelationFormat.OBJECT:
                continue
            value = snapshot.details.get(relation.key)
            if isinstance(value, list):
                snapshot.details[relation.key] = [v for v in value if v in produced]
