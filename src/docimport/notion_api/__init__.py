"""docimport.notion_api -- Notion API transport and endpoint wrappers.

This sub-package provides:

* :mod:`.rate_limit` -- Token bucket rate limiter.
* :mod:`.retries` -- Retry decisions, backoff and the fixed-delay helper.
* :mod:`.transport` -- HTTP transport with auth, pacing and error decoding.
* :mod:`.search`, :mod:`.databases`, :mod:`.pages`, :mod:`.blocks`,
  :mod:`.users` -- endpoint wrappers.
"""

from __future__ import annotations

from .blocks import BlockAPI
from .databases import DatabaseAPI
from .pages import PageAPI
from .rate_limit import TokenBucket
from .retries import compute_backoff, retry_fixed, should_retry
from .search import SearchAPI, SearchResult
from .transport import NotionTransport, error_for_response
from .users import UserAPI


class NotionClient:
    """Bundle of endpoint wrappers sharing one :class:`NotionTransport`."""

    def __init__(self, transport: NotionTransport) -> None:
        self.transport = transport
        self.search = SearchAPI(transport)
        self.databases = DatabaseAPI(transport)
        self.pages = PageAPI(transport)
        self.blocks = BlockAPI(transport)
        self.users = UserAPI(transport)

    def close(self) -> None:
        self.transport.close()


__all__ = [
    "BlockAPI",
    "DatabaseAPI",
    "NotionClient",
    "NotionTransport",
    "PageAPI",
    "SearchAPI",
    "SearchResult",
    "TokenBucket",
    "UserAPI",
    "compute_backoff",
    "error_for_response",
    "retry_fixed",
    "should_retry",
]
