"""Per-import scratch state shared by the Notion converter stages.

The database stage fills the database maps and the parent listing; the
page pre-pass fills the page maps.  Page workers then only *read* those
maps, except for :meth:`ImportContext.get_target_block`, which consumes
parent listing entries, and the relation and option registries, which
are each guarded by their own lock.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from docimport.models import (
    DetailKey,
    ObjectKind,
    ObjectType,
    RelationFormat,
    Snapshot,
)
from docimport.utils.ids import new_option_id, new_relation_key, relation_id


@dataclass(frozen=True)
class RelationDefinition:
    """A relation produced for one Notion property ID."""

    key: str
    name: str
    format: RelationFormat


class ImportContext:
    """ID maps and registries for one Notion import."""

    def __init__(self) -> None:
        # Notion ID -> local snapshot ID
        self.notion_page_ids: dict[str, str] = {}
        self.notion_database_ids: dict[str, str] = {}
        # Notion ID -> display name
        self.page_names: dict[str, str] = {}
        self.database_names: dict[str, str] = {}
        # Notion parent ID -> Notion child IDs, in enumeration order
        self.parent_to_children: dict[str, list[str]] = {}

        self._relations: dict[str, RelationDefinition] = {}
        self._options: dict[str, dict[str, str]] = {}
        self._relation_lock = threading.Lock()
        self._option_lock = threading.Lock()
        self._children_lock = threading.Lock()

    # -- parent listing ----------------------------------------------------

    def add_child(self, parent_id: str, child_id: str) -> None:
        if not parent_id:
            return
        with self._children_lock:
            self.parent_to_children.setdefault(parent_id, []).append(child_id)

    def get_target_block(
        self,
        parent_id: str,
        title: str,
        names: dict[str, str],
        local_ids: dict[str, str],
    ) -> str | None:
        """Resolve a child referenced only by *title* under *parent_id*.

        The first child of *parent_id* whose name equals *title* wins and
        is removed from the listing, so siblings sharing a title resolve to
        distinct targets in enumeration order.

        Parameters
        ----------
        parent_id:
            Notion ID of the page holding the reference.
        title:
            Title carried by the ``child_page`` / ``child_database`` block.
        names:
            Notion ID -> name map of the candidate kind.
        local_ids:
            Notion ID -> local snapshot ID map of the candidate kind.

        Returns
        -------
        str | None
            The local ID, or ``None`` when no candidate is left.
        """
        with self._children_lock:
            children = self.parent_to_children.get(parent_id)
            if not children:
                return None
            for index, child_id in enumerate(children):
                if child_id in names and names[child_id] == title:
                    del children[index]
                    return local_ids.get(child_id)
        return None

    # -- relations and options ---------------------------------------------

    def relation_for(self, property_id: str) -> RelationDefinition | None:
        with self._relation_lock:
            return self._relations.get(property_id)

    def register_relation(
        self,
        property_id: str,
        name: str,
        format: RelationFormat,
    ) -> tuple[RelationDefinition, Snapshot | None]:
        """Return the relation for *property_id*, creating it on first use.

        The snapshot is returned only to the caller that created the
        definition; every later caller gets ``None``.
        """
        with self._relation_lock:
            existing = self._relations.get(property_id)
            if existing is not None:
                return existing, None
            definition = RelationDefinition(key=new_relation_key(), name=name, format=format)
            self._relations[property_id] = definition
        return definition, relation_snapshot(definition)

    def register_option(self, relation_key: str, name: str, color: str) -> Snapshot | None:
        """Create the option *name* of *relation_key* unless it already exists."""
        with self._option_lock:
            options = self._options.setdefault(relation_key, {})
            if name in options:
                return None
            option_id = new_option_id()
            options[name] = option_id
        return option_snapshot(option_id, relation_key, name, color)

    def options_of(self, relation_key: str) -> dict[str, str]:
        with self._option_lock:
            return dict(self._options.get(relation_key, {}))


def relation_snapshot(definition: RelationDefinition) -> Snapshot:
    snapshot_id = relation_id(definition.key)
    return Snapshot(
        id=snapshot_id,
        file_name=definition.name,
        kind=ObjectKind.SUB_OBJECT,
        details={
            DetailKey.ID: snapshot_id,
            DetailKey.NAME: definition.name,
            DetailKey.RELATION_KEY: definition.key,
            DetailKey.RELATION_FORMAT: definition.format.value,
            DetailKey.LAYOUT: ObjectType.RELATION,
        },
        object_types=[ObjectType.RELATION],
    )


def option_snapshot(option_id: str, relation_key: str, name: str, color: str) -> Snapshot:
    return Snapshot(
        id=option_id,
        file_name=name,
        kind=ObjectKind.SUB_OBJECT,
        details={
            DetailKey.ID: option_id,
            DetailKey.NAME: name,
            DetailKey.RELATION_KEY: relation_key,
            DetailKey.RELATION_OPTION_COLOR: color,
            DetailKey.LAYOUT: ObjectType.RELATION_OPTION,
        },
        object_types=[ObjectType.RELATION_OPTION],
    )
