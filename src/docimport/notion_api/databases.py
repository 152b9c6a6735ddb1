"""Database API wrapper for the Notion API."""

from __future__ import annotations

from typing import Any

from .transport import NotionTransport


class DatabaseAPI:
    """Read access to ``/databases``.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def query(self, database_id: str, filter: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Return every page (row) of a database, following ``next_cursor``."""
        body: dict[str, Any] = {}
        if filter is not None:
            body["filter"] = filter
        return list(
            self._transport.paginate(
                f"/databases/{database_id}/query", method="POST", json=body,
            )
        )
