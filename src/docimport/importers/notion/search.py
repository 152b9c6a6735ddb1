"""Discovery of everything the integration can see."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from docimport.config import ImportConfig
from docimport.errors import NotionError
from docimport.notion_api import NotionClient, SearchResult, retry_fixed
from docimport.observability import get_logger

log = get_logger("docimport.notion.search")


def search_objects(
    client: NotionClient,
    config: ImportConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> SearchResult:
    """Run the paginated search, retried with a fixed delay.

    Transient failures are retried up to ``config.search_retry_attempts``
    times, ``config.search_retry_delay`` seconds apart; a successful call
    returns at once.
    """
    return retry_fixed(
        client.search.search,
        attempts=config.search_retry_attempts,
        delay=config.search_retry_delay,
        sleep=sleep,
    )


def query_missing_pages(
    client: NotionClient,
    databases: list[dict[str, Any]],
    known_pages: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Rows of *databases* that search did not return.

    A failing query only loses that database's extra rows.
    """
    seen = {page.get("id") for page in known_pages}
    missing: list[dict[str, Any]] = []
    for database in databases:
        database_id = database.get("id", "")
        try:
            rows = client.databases.query(database_id)
        except NotionError as exc:
            log.warning(
                "failed to query notion database",
                extra={"extra_fields": {"op": "query_database", "database_id": database_id, "error": str(exc)}},
            )
            continue
        for row in rows:
            if row.get("object") != "page" or row.get("archived") or row.get("id") in seen:
                continue
            seen.add(row.get("id"))
            missing.append(row)
    return missing
