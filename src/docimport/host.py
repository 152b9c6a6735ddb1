"""Contracts of the collaborators that persist an import.

The converters never talk to storage.  The :class:`~docimport.importer.Importer`
hands their snapshots to an :class:`ObjectStore` and embedded binaries to a
:class:`FileStore`; any object with matching methods can be used.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from docimport.models import Block, RelationFormat, Snapshot


@runtime_checkable
class ObjectStore(Protocol):
    """Persistence for pages, collections and workspace sub-objects."""

    def create_object(self, snapshot: Snapshot) -> str:
        """Persist a page or collection and return its object ID.

        The store is expected to keep ``snapshot.id`` so that links between
        snapshots of the same import stay valid.
        """
        ...

    def create_sub_object(self, snapshot: Snapshot) -> str:
        """Persist a relation or relation option.

        Returns the relation key for a relation and the option ID for an
        option; an empty string means "as given in the snapshot".
        """
        ...

    def find_relation(self, name: str, format: RelationFormat) -> str | None:
        """Return the key of an existing relation with this name and format."""
        ...

    def aggregated_options(self, relation_key: str) -> dict[str, str]:
        """Return ``option name -> option ID`` for *relation_key*."""
        ...

    def set_details(self, object_id: str, details: dict[str, Any]) -> None:
        ...

    def add_extra_relations(self, object_id: str, relation_keys: list[str]) -> None:
        ...

    def replace_block(self, object_id: str, block_id: str, block: Block) -> None:
        ...


@runtime_checkable
class FileStore(Protocol):
    """Content-addressed storage for embedded binaries."""

    def get_by_hash(self, file_hash: str) -> bool:
        """Return ``True`` when *file_hash* is already stored."""
        ...

    def upload(self, source: str) -> str:
        """Ingest a local path or URL and return its content hash."""
        ...
