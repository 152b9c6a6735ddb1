"""Root collection: one container object per import run."""

from __future__ import annotations

from docimport.models import (
    Block,
    Dataview,
    DetailKey,
    ObjectKind,
    ObjectType,
    RelationFormat,
    RelationLink,
    Snapshot,
)
from docimport.utils.ids import new_block_id, new_object_id


def build_root_collection(name: str, member_ids: list[str]) -> Snapshot:
    """Build the collection listing every top-level object of an import.

    Parameters
    ----------
    name:
        Display name, e.g. ``"Notion Import"``.
    member_ids:
        Snapshot IDs of the pages and collections to list, in order.
    """
    name_link = RelationLink(key=DetailKey.NAME, format=RelationFormat.SHORT_TEXT)
    view = Block(id=new_block_id(), content=Dataview(relation_links=[name_link]))
    return Snapshot(
        id=new_object_id(),
        file_name=name,
        kind=ObjectKind.COLLECTION,
        blocks=[view],
        details={
            DetailKey.NAME: name,
            DetailKey.IS_FAVORITE: False,
            DetailKey.LAYOUT: ObjectType.COLLECTION,
        },
        object_types=[ObjectType.COLLECTION],
        relation_links=[name_link],
        collections=list(member_ids),
    )
