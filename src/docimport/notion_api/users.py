"""Users API wrapper for the Notion API."""

from __future__ import annotations

from typing import Any

from .transport import NotionTransport


class UserAPI:
    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def list(self, page_size: int = 1) -> dict[str, Any]:
        """Return one page of ``GET /users``; used as a cheap auth check."""
        return self._transport.request("GET", "/users", params={"page_size": page_size})
