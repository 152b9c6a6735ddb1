"""Block API wrapper for the Notion API."""

from __future__ import annotations

from typing import Any

from .transport import NotionTransport


class BlockAPI:
    """Read access to ``/blocks``.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def get_children(self, block_id: str) -> list[dict[str, Any]]:
        """Return every direct child of *block_id* (or of a page).

        Auto-paginates ``GET /blocks/{id}/children``; nested children are
        not expanded.
        """
        return list(
            self._transport.paginate(f"/blocks/{block_id}/children", method="GET")
        )
