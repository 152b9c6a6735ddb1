"""Page API wrapper for the Notion API."""

from __future__ import annotations

from typing import Any

from .transport import NotionTransport


class PageAPI:
    """Read access to ``/pages``.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def retrieve_property(self, page_id: str, property_id: str) -> list[dict[str, Any]]:
        """Fetch the full value of one page property.

        ``GET /pages/{id}/properties/{prop}`` answers with a single
        property item for scalar kinds and with a paginated list for
        ``title``, ``rich_text``, ``people`` and ``relation``.  Both shapes
        are returned as a list of property items.

        Parameters
        ----------
        page_id:
            The page UUID.
        property_id:
            The property ID from the page's ``properties`` map.

        Returns
        -------
        list[dict]
            Property item objects in API order.
        """
        path = f"/pages/{page_id}/properties/{property_id}"
        items: list[dict[str, Any]] = []
        for data in self._transport.paginate_pages(path, method="GET"):
            if data.get("object") != "list":
                return [data]
            items.extend(data.get("results", []))
        return items
