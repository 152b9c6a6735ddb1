"""Runtime configuration for docimport.

:class:`ImportConfig` is a plain dataclass that captures every tuneable
knob used by the importer, the converters and the Notion HTTP client.
Only ``token`` matters for Notion imports; HTML and Markdown imports run
with the defaults.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
MAX_PAGE_SIZE = 100
MAX_WORKERS = 8


@dataclass
class ImportConfig:
    """Complete configuration for an import run.

    Parameters
    ----------
    token:
        Notion integration token.  Never logged; masked in ``repr``.
    notion_version:
        Value of the ``Notion-Version`` header sent with every request.
    base_url:
        API root URL.  Override for proxy or testing environments.
    page_size:
        ``page_size`` sent on every paginated call (1 to 100).
    search_retry_attempts:
        How many times the discovery search is attempted before giving up.
    search_retry_delay:
        Fixed sleep (seconds) between search attempts.
    retry_max_attempts:
        Attempts per HTTP request at the transport level.  ``1`` disables
        transport retries so that only the search retry applies.
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on computed backoff delay.
    retry_jitter:
        Add random jitter to backoff intervals.
    rate_limit_rps:
        Target requests per second for client-side pacing (token bucket).
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    max_workers:
        Size of the Notion page worker pool.
    max_block_depth:
        Nesting depth at which recursive block fetching stops.
    temp_dir:
        Directory for binaries extracted from archives.  ``None`` uses the
        system temporary directory.
    metrics:
        Optional :class:`~docimport.observability.MetricsHook`.
    """

    # ── Notion ──────────────────────────────────────────────────────────
    token: str = ""

    notion_version: str = NOTION_VERSION

    base_url: str = NOTION_API_URL

    page_size: int = MAX_PAGE_SIZE

    search_retry_attempts: int = 5

    search_retry_delay: float = 1.0

    # ── Retry & rate ────────────────────────────────────────────────────
    retry_max_attempts: int = 1

    retry_base_delay: float = 1.0

    retry_max_delay: float = 30.0

    retry_jitter: bool = True

    rate_limit_rps: float = 3.0

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Conversion ─────────────────────────────────────────────────────
    max_workers: int = 4

    max_block_depth: int = 64

    temp_dir: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API token, or target localhost for testing."
            )

        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be in 1..{MAX_PAGE_SIZE}, got {self.page_size}")
        if self.search_retry_attempts < 1:
            raise ValueError(
                f"search_retry_attempts must be >= 1, got {self.search_retry_attempts}"
            )
        if self.search_retry_delay < 0:
            raise ValueError(f"search_retry_delay must be >= 0, got {self.search_retry_delay}")
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.rate_limit_rps <= 0:
            raise ValueError(f"rate_limit_rps must be > 0, got {self.rate_limit_rps}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if not 1 <= self.max_workers <= MAX_WORKERS:
            raise ValueError(f"max_workers must be in 1..{MAX_WORKERS}, got {self.max_workers}")
        if self.max_block_depth < 1:
            raise ValueError(f"max_block_depth must be >= 1, got {self.max_block_depth}")

    def with_token(self, token: str) -> ImportConfig:
        """Return a copy carrying *token*; requests bring their own key."""
        return dataclasses.replace(self, token=token)

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"ImportConfig({', '.join(parts)})"
