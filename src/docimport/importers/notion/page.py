"""Notion pages to page snapshots, converted by a pool of page tasks.

A sequential pre-pass allocates every page's local ID and records its
title and parent, so that links between pages resolve no matter which
worker converts them.  Each :class:`Task` then fetches, maps and
annotates one page:

``PENDING -> FETCHING_BLOCKS -> FETCHING_CHILDREN -> MAPPING_BLOCKS ->
MAPPING_PROPERTIES -> DONE``, or ``FAILED`` from any working state.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from docimport.config import ImportConfig
from docimport.errors import CancelError, ConvertError, DocImportError, NotionError
from docimport.models import (
    Block,
    DetailKey,
    ImportMode,
    ObjectKind,
    ObjectType,
    Relation,
    RelationBlock,
    Snapshot,
)
from docimport.notion_api import NotionClient
from docimport.observability import get_logger
from docimport.progress import Progress
from docimport.utils.ids import new_block_id, new_object_id

from .blocks import BlockFetcher
from .context import ImportContext
from .database import object_details, parent_id
from .mapper import BlockMapper
from .properties import (
    PAGINATED_KINDS,
    extract_value,
    is_title,
    merge_items,
    page_title,
    relation_format,
)

log = get_logger("docimport.notion.page")

_DATA_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


class TaskState(str, Enum):
    PENDING = "pending"
    FETCHING_BLOCKS = "fetching_blocks"
    FETCHING_CHILDREN = "fetching_children"
    MAPPING_BLOCKS = "mapping_blocks"
    MAPPING_PROPERTIES = "mapping_properties"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TaskResult:
    snapshot: Snapshot
    sub_objects: list[Snapshot] = field(default_factory=list)
    relations: list[Relation] = field(default_factory=list)


class Task:
    """Convert one Notion page.

    Parameters
    ----------
    page:
        The page object as returned by search.
    context:
        Shared import context; the page must already be registered.
    client:
        Notion endpoint wrappers.
    config:
        Supplies ``max_block_depth``.
    progress:
        Stepped once when the page is done; checked for cancellation.
    """

    def __init__(
        self,
        page: dict[str, Any],
        context: ImportContext,
        client: NotionClient,
        config: ImportConfig,
        progress: Progress,
    ) -> None:
        self.page = page
        self.page_id: str = page.get("id", "")
        self.state = TaskState.PENDING
        self.failed_in: TaskState | None = None
        self._context = context
        self._client = client
        self._config = config
        self._progress = progress

    def run(self) -> TaskResult:
        try:
            result = self._run()
        except Exception:
            self.failed_in = self.state
            self.state = TaskState.FAILED
            raise
        self.state = TaskState.DONE
        self._progress.try_step(1)
        return result

    def _run(self) -> TaskResult:
        fetcher = BlockFetcher(self._client.blocks, self._config.max_block_depth, self._progress)
        self.state = TaskState.FETCHING_BLOCKS
        notion_blocks = fetcher.fetch_level(self.page_id)
        self.state = TaskState.FETCHING_CHILDREN
        fetcher.expand(notion_blocks)

        self.state = TaskState.MAPPING_BLOCKS
        blocks = BlockMapper(self._context, self.page_id).map(notion_blocks)

        self.state = TaskState.MAPPING_PROPERTIES
        properties = self.page.get("properties") or {}
        title = self._context.page_names.get(self.page_id, page_title(properties))
        details = object_details(self.page, title)
        details[DetailKey.IS_FAVORITE] = False
        details[DetailKey.LAYOUT] = ObjectType.PAGE
        sub_objects, relations, relation_blocks = self._map_properties(properties, details)

        snapshot = Snapshot(
            id=self._context.notion_page_ids[self.page_id],
            file_name=self.page.get("url", ""),
            kind=ObjectKind.PAGE,
            blocks=relation_blocks + blocks,
            details=details,
            object_types=[ObjectType.PAGE],
        )
        return TaskResult(snapshot=snapshot, sub_objects=sub_objects, relations=relations)

    def _map_properties(
        self,
        properties: dict[str, Any],
        details: dict[str, Any],
    ) -> tuple[list[Snapshot], list[Relation], list[Block]]:
        """Detail values, new relation/option snapshots and relation edges.

        Every non-title property yields one edge and one relation block;
        the relation definition is shared across pages by property ID.
        """
        object_ids = {**self._context.notion_database_ids, **self._context.notion_page_ids}
        sub_objects: list[Snapshot] = []
        relations: list[Relation] = []
        relation_blocks: list[Block] = []
        for name, prop in properties.items():
            if not isinstance(prop, dict) or is_title(prop):
                continue
            if prop.get("type") in PAGINATED_KINDS:
                prop = self._full_value(name, prop)

            definition, relation = self._context.register_relation(
                prop.get("id", name), name, relation_format(prop),
            )
            if relation is not None:
                sub_objects.append(relation)

            value = extract_value(prop, object_ids)
            details[definition.key] = value.value
            for option in value.options:
                snapshot = self._context.register_option(definition.key, option.name, option.color)
                if snapshot is not None:
                    sub_objects.append(snapshot)

            block = Block(id=new_block_id(), content=RelationBlock(key=definition.key))
            relation_blocks.append(block)
            relations.append(Relation(
                name=definition.name,
                format=definition.format,
                key=definition.key,
                block_id=block.id,
                options=list(value.options),
            ))
        return sub_objects, relations, relation_blocks

    def _full_value(self, name: str, prop: dict[str, Any]) -> dict[str, Any]:
        """Re-read a possibly truncated value from the property endpoint."""
        property_id = prop.get("id")
        if not property_id:
            return prop
        try:
            items = self._client.pages.retrieve_property(self.page_id, property_id)
        except NotionError as exc:
            log.warning(
                "failed to fetch full property value, using inline value",
                extra={"extra_fields": {
                    "op": "page_property", "page_id": self.page_id,
                    "property": name, "error": str(exc),
                }},
            )
            return prop
        merged = merge_items(prop.get("type", ""), items)
        merged["id"] = property_id
        return merged


class PageConverter:
    """Run page tasks on a thread pool of ``config.max_workers`` workers."""

    def __init__(self, client: NotionClient, context: ImportContext, config: ImportConfig) -> None:
        self._client = client
        self._context = context
        self._config = config

    def register(self, pages: list[dict[str, Any]], progress: Progress) -> None:
        """Allocate local IDs and record titles and parents of *pages*."""
        for page in pages:
            progress.try_step(1)
            notion_id = page["id"]
            self._context.notion_page_ids[notion_id] = new_object_id()
            self._context.page_names[notion_id] = page_title(page.get("properties") or {})
            self._context.add_child(parent_id(page), notion_id)

    def convert(
        self,
        pages: list[dict[str, Any]],
        mode: ImportMode,
        progress: Progress,
    ) -> tuple[list[Snapshot], dict[str, list[Relation]], ConvertError]:
        """Convert *pages*.

        Returns
        -------
        tuple
            Page and sub-object snapshots, relation edges keyed by page
            snapshot ID, and per-page failures keyed by Notion page ID.

        Raises
        ------
        CancelError
            When the import is cancelled; pending tasks are dropped.
        """
        progress.set_progress_message("Start creating pages from notion")
        errors = ConvertError()
        snapshots: list[Snapshot] = []
        relations: dict[str, list[Relation]] = {}

        valid_pages = []
        for page in pages:
            if isinstance(page, dict) and page.get("id"):
                valid_pages.append(page)
            else:
                errors.add("/pages", ValueError("page without id"))
        if errors.should_abort(mode):
            return snapshots, relations, errors

        self.register(valid_pages, progress)
        tasks = [
            Task(page, self._context, self._client, self._config, progress)
            for page in valid_pages
        ]
        with ThreadPoolExecutor(max_workers=self._config.max_workers) as executor:
            future_to_task = {executor.submit(task.run): task for task in tasks}
            for future in as_completed(future_to_task):
                task = future_to_task[future]
                try:
                    result = future.result()
                except CancelError:
                    for pending in future_to_task:
                        pending.cancel()
                    raise
                except (DocImportError, *_DATA_ERRORS) as exc:
                    log.warning(
                        "failed to convert notion page",
                        extra={"extra_fields": {
                            "op": "convert_page", "page_id": task.page_id,
                            "stage": task.failed_in.value if task.failed_in else "", "error": str(exc),
                        }},
                    )
                    errors.add(task.page_id, exc)
                    if errors.should_abort(mode):
                        for pending in future_to_task:
                            pending.cancel()
                        break
                    continue
                snapshots.append(result.snapshot)
                snapshots.extend(result.sub_objects)
                relations[result.snapshot.id] = result.relations
        return snapshots, relations, errors
