"""Search API wrapper for the Notion API.

``POST /search`` lists every page and database shared with the
integration.  Results are split by ``object`` type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .transport import NotionTransport


@dataclass
class SearchResult:
    databases: list[dict[str, Any]] = field(default_factory=list)
    pages: list[dict[str, Any]] = field(default_factory=list)


class SearchAPI:
    """Wrapper for ``/search``.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def search(self, query: str = "") -> SearchResult:
        """Return everything the integration can see, partitioned by type.

        Archived objects are dropped; results of unknown ``object`` types
        are ignored.
        """
        body: dict[str, Any] = {}
        if query:
            body["query"] = query
        result = SearchResult()
        for item in self._transport.paginate("/search", method="POST", json=body):
            if item.get("archived"):
                continue
            kind = item.get("object")
            if kind == "database":
                result.databases.append(item)
            elif kind == "page":
                result.pages.append(item)
        return result
