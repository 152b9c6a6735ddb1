"""Notion databases to collection snapshots."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from docimport.errors import ConvertError
from docimport.models import (
    COVER_TYPE_IMAGE,
    Block,
    Dataview,
    DetailKey,
    ImportMode,
    ObjectKind,
    ObjectType,
    RelationFormat,
    RelationLink,
    Snapshot,
)
from docimport.observability import get_logger
from docimport.progress import Progress
from docimport.utils.ids import new_block_id, new_object_id

from .context import ImportContext
from .mapper import file_url
from .properties import is_title, relation_format
from .rich_text import plain_text

log = get_logger("docimport.notion.database")


def parse_timestamp(value: str | None) -> float | None:
    """Unix seconds for a Notion ISO-8601 timestamp; ``None`` if unparseable."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return None


def object_details(obj: dict[str, Any], name: str) -> dict[str, Any]:
    """Details shared by page and database snapshots."""
    details: dict[str, Any] = {
        DetailKey.NAME: name,
        DetailKey.SOURCE: obj.get("url", ""),
        DetailKey.SOURCE_FILE_PATH: obj.get("url", ""),
        DetailKey.IS_ARCHIVED: bool(obj.get("archived", False)),
        DetailKey.CREATOR: (obj.get("created_by") or {}).get("name", ""),
        DetailKey.LAST_MODIFIED_BY: (obj.get("last_edited_by") or {}).get("name", ""),
    }
    icon = obj.get("icon") or {}
    if icon.get("type") == "emoji":
        details[DetailKey.ICON_EMOJI] = icon.get("emoji", "")
    elif icon.get("type") in ("file", "external"):
        details[DetailKey.ICON_IMAGE] = file_url(icon)
    cover = obj.get("cover") or {}
    cover_url = file_url(cover)
    if cover_url:
        details[DetailKey.COVER_ID] = cover_url
        details[DetailKey.COVER_TYPE] = COVER_TYPE_IMAGE
    created = parse_timestamp(obj.get("created_time"))
    if created is not None:
        details[DetailKey.CREATED_DATE] = created
    edited = parse_timestamp(obj.get("last_edited_time"))
    if edited is not None:
        details[DetailKey.LAST_MODIFIED_DATE] = edited
    return details


def parent_id(obj: dict[str, Any]) -> str:
    """Notion ID of the page or database holding *obj*, if any."""
    parent = obj.get("parent") or {}
    return parent.get("database_id") or parent.get("page_id") or ""


class DatabaseConverter:
    """Build one collection snapshot per database.

    Relation definitions for the schema's properties are registered in
    the shared context so that page properties with the same ID reuse
    them.
    """

    def __init__(self, context: ImportContext) -> None:
        self._context = context

    def convert(
        self,
        databases: list[dict[str, Any]],
        mode: ImportMode,
        progress: Progress,
    ) -> tuple[list[Snapshot], ConvertError]:
        """Convert *databases* in order.

        Returns the collection and relation snapshots produced so far and
        the per-database failures; on ALL_OR_NOTHING the first failure
        stops the loop.
        """
        progress.set_progress_message("Start creating collections from notion databases")
        errors = ConvertError()
        snapshots: list[Snapshot] = []
        for database in databases:
            progress.try_step(1)
            try:
                snapshots.extend(self._convert_one(database))
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                database_id = database.get("id", "") if isinstance(database, dict) else ""
                log.warning(
                    "failed to convert notion database",
                    extra={"extra_fields": {"op": "convert_database", "database_id": database_id, "error": str(exc)}},
                )
                errors.add(database_id or "/databases", exc)
                if errors.should_abort(mode):
                    break
        return snapshots, errors

    def _convert_one(self, database: dict[str, Any]) -> list[Snapshot]:
        notion_id = database["id"]
        name = plain_text((database.get("title") or [])[:1])
        details = object_details(database, name)
        details[DetailKey.DESCRIPTION] = plain_text(database.get("description"))
        details[DetailKey.IS_FAVORITE] = False
        details[DetailKey.LAYOUT] = ObjectType.COLLECTION

        name_link = RelationLink(key=DetailKey.NAME, format=RelationFormat.SHORT_TEXT)
        links = [name_link]
        produced: list[Snapshot] = []
        for prop_name, prop in (database.get("properties") or {}).items():
            if is_title(prop):
                continue
            definition, relation = self._context.register_relation(
                prop.get("id", prop_name), prop_name, relation_format(prop),
            )
            if relation is not None:
                produced.append(relation)
            links.append(RelationLink(key=definition.key, format=definition.format))

        local_id = new_object_id()
        view = Block(id=new_block_id(), content=Dataview(relation_links=list(links)))
        produced.append(Snapshot(
            id=local_id,
            file_name=database.get("url", ""),
            kind=ObjectKind.COLLECTION,
            blocks=[view],
            details=details,
            object_types=[ObjectType.COLLECTION],
            relation_links=links,
        ))

        self._context.notion_database_ids[notion_id] = local_id
        self._context.database_names[notion_id] = name
        self._context.add_child(parent_id(database), notion_id)
        return produced
