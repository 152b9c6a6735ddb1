"""HTTP transport for the Notion API.

The transport handles the full request lifecycle:

1. Acquire a token-bucket slot (wait if needed).
2. Send the HTTP request with ``Authorization`` and ``Notion-Version``.
3. On ``2xx`` -- return the parsed JSON response.
4. On ``429`` / ``5xx`` / network error -- back off and retry while the
   configured attempts last (one attempt by default).
5. Otherwise decode the Notion error body into a typed
   :class:`~docimport.errors.NotionError` and raise it.

Pagination helpers add ``start_cursor`` / ``page_size`` and follow
``next_cursor`` until ``has_more`` is false.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from typing import Any

import httpx

from docimport.config import ImportConfig
from docimport.errors import (
    NotionAuthError,
    NotionError,
    NotionInternalError,
    NotionNetworkError,
    NotionNotFoundError,
    NotionPermissionError,
    NotionRateLimitError,
    NotionRetryExhaustedError,
    NotionValidationError,
)
from docimport.observability import NoopMetricsHook, get_logger

from .rate_limit import TokenBucket
from .retries import RETRYABLE_STATUSES, compute_backoff, should_retry

log = get_logger("docimport.notion.transport")


# ---------------------------------------------------------------------------
# Error decoding
# ---------------------------------------------------------------------------

_NOTION_CODE_ERRORS: dict[str, type[NotionError]] = {
    "invalid_json": NotionValidationError,
    "invalid_request_url": NotionValidationError,
    "invalid_request": NotionValidationError,
    "validation_error": NotionValidationError,
    "missing_version": NotionValidationError,
    "unauthorized": NotionAuthError,
    "restricted_resource": NotionPermissionError,
    "object_not_found": NotionNotFoundError,
    "rate_limited": NotionRateLimitError,
    "conflict_error": NotionInternalError,
    "internal_server_error": NotionInternalError,
    "service_unavailable": NotionInternalError,
    "database_connection_unavailable": NotionInternalError,
    "gateway_timeout": NotionInternalError,
}

_STATUS_ERRORS: dict[int, type[NotionError]] = {
    400: NotionValidationError,
    401: NotionAuthError,
    403: NotionPermissionError,
    404: NotionNotFoundError,
    409: NotionInternalError,
    429: NotionRateLimitError,
}


def _parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the ``Retry-After`` header value as a float, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def error_for_response(response: httpx.Response, method: str, path: str) -> NotionError:
    """Decode a non-2xx response into the matching :class:`NotionError`.

    The Notion body ``code`` wins over the HTTP status; unknown codes fall
    back to the status, and anything else is reported as a validation
    error (4xx) or an internal error (5xx).
    """
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    notion_message = body.get("message") or response.text[:500]
    notion_code = body.get("code", "")

    error_cls = _NOTION_CODE_ERRORS.get(notion_code) or _STATUS_ERRORS.get(status)
    if error_cls is None:
        error_cls = NotionInternalError if status >= 500 else NotionValidationError

    context: dict[str, Any] = {
        "status_code": status,
        "notion_code": notion_code,
        "method": method,
        "path": path,
    }
    if error_cls is NotionRateLimitError:
        context["retry_after"] = _parse_retry_after(response)
    return error_cls(
        message=f"{method} {path} failed with {status} {notion_code}: {notion_message}",
        context=context,
    )


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class NotionTransport:
    """Synchronous HTTP transport with auth, pacing and optional retries.

    Parameters
    ----------
    config:
        An :class:`ImportConfig` carrying the token and HTTP settings.
    http_transport:
        Optional :class:`httpx.BaseTransport` (e.g. ``httpx.MockTransport``)
        used instead of the network.
    """

    def __init__(
        self,
        config: ImportConfig,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        self._bucket = TokenBucket(
            rate_rps=config.rate_limit_rps,
            burst=10,
        )
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

        client_kwargs: dict[str, Any] = {
            "base_url": config.base_url,
            "headers": {
                "Authorization": f"Bearer {config.token}",
                "Notion-Version": config.notion_version,
                "Content-Type": "application/json",
            },
            "timeout": httpx.Timeout(config.timeout_seconds),
        }
        if http_transport is not None:
            client_kwargs["transport"] = http_transport
        elif config.http_proxy:
            client_kwargs["proxy"] = config.http_proxy
        self._client = httpx.Client(**client_kwargs)

    @property
    def config(self) -> ImportConfig:
        return self._config

    @property
    def http_client(self) -> httpx.Client:
        """The underlying client, for callers that handle responses themselves."""
        return self._client

    # -- public API --------------------------------------------------------

    def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute an HTTP request against the Notion API.

        Parameters
        ----------
        method:
            HTTP method (``GET``, ``POST`` ...).
        path:
            API path relative to ``base_url`` (e.g. ``/search``).
        **kwargs:
            Forwarded to :meth:`httpx.Client.request` (``json=``,
            ``params=``, ``headers=``).

        Returns
        -------
        dict
            Parsed JSON response body.

        Raises
        ------
        NotionError
            The typed subclass matching the response, or
            :class:`NotionNetworkError` when no response was received.
        NotionRetryExhaustedError
            When more than one attempt is configured and all failed.
        """
        max_attempts = self._config.retry_max_attempts
        last_error: NotionError | None = None

        for attempt in range(max_attempts):
            wait = self._bucket.acquire()
            if wait > 0:
                self._metrics.timing(
                    "docimport.rate_limit_wait_ms",
                    wait * 1000,
                    tags={"method": method, "path": path},
                )

            t0 = time.monotonic()
            try:
                response = self._client.request(method, path, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                self._metrics.increment(
                    "docimport.requests_total",
                    tags={"method": method, "path": path, "status": "error"},
                )
                log.warning(
                    "Request network error",
                    extra={"extra_fields": {
                        "op": "request", "method": method, "path": path,
                        "attempt": attempt + 1, "error": str(exc),
                    }},
                )
                last_error = NotionNetworkError(
                    message=f"Network error on {method} {path}: {exc}",
                    context={"method": method, "path": path, "attempt": attempt + 1},
                    cause=exc,
                )
                if not should_retry(None, exc, attempt, max_attempts):
                    break
                self._sleep_before_retry(method, path, attempt, "network_error")
                continue

            elapsed_ms = (time.monotonic() - t0) * 1000
            status = response.status_code
            self._metrics.increment(
                "docimport.requests_total",
                tags={"method": method, "path": path, "status": str(status)},
            )
            self._metrics.timing(
                "docimport.request_duration_ms",
                elapsed_ms,
                tags={"method": method, "path": path, "status": str(status)},
            )

            if 200 <= status < 300:
                if status == 204 or not response.content:
                    return {}
                result: dict = response.json()
                return result

            error = error_for_response(response, method, path)
            if status not in RETRYABLE_STATUSES:
                raise error

            last_error = error
            if not should_retry(status, None, attempt, max_attempts):
                break
            reason = "rate_limited" if status == 429 else "server_error"
            log.warning(
                "Retryable response from Notion API",
                extra={"extra_fields": {
                    "op": "request", "method": method, "path": path,
                    "status_code": status, "attempt": attempt + 1,
                }},
            )
            self._sleep_before_retry(
                method, path, attempt, reason,
                retry_after=_parse_retry_after(response) if status == 429 else None,
            )

        ctx: dict[str, Any] = {"attempts": max_attempts, "method": method, "path": path}
        if last_error is None:
            raise NotionRetryExhaustedError(
                message=f"All {max_attempts} attempts exhausted for {method} {path}",
                context=ctx,
            )
        if max_attempts == 1:
            raise last_error
        ctx["last_status_code"] = last_error.status_code
        raise NotionRetryExhaustedError(
            message=f"All {max_attempts} attempts exhausted for {method} {path}: {last_error}",
            context=ctx,
            cause=last_error,
        )

    def paginate(self, path: str, **kwargs: Any) -> Iterator[dict]:
        """Auto-paginate a Notion list endpoint, yielding each result item.

        ``POST`` endpoints (``/search``, ``/databases/{id}/query``) carry the
        cursor in the JSON body, ``GET`` endpoints in the query string.

        Parameters
        ----------
        path:
            API path to paginate (e.g. ``/blocks/{id}/children``).
        **kwargs:
            ``method=`` (default ``GET``) plus anything accepted by
            :meth:`request`.

        Yields
        ------
        dict
            Individual result objects from each page.
        """
        for data in self.paginate_pages(path, **kwargs):
            yield from data.get("results", [])

    def paginate_pages(self, path: str, **kwargs: Any) -> Iterator[dict]:
        """Like :meth:`paginate` but yields each raw response body."""
        method = kwargs.pop("method", "GET")
        page_size = self._config.page_size
        cursor: str | None = None

        while True:
            if method.upper() in ("POST", "PATCH"):
                json_body: dict = dict(kwargs.get("json") or {})
                json_body["page_size"] = page_size
                if cursor is not None:
                    json_body["start_cursor"] = cursor
                kwargs["json"] = json_body
            else:
                params: dict = dict(kwargs.get("params") or {})
                params["page_size"] = page_size
                if cursor is not None:
                    params["start_cursor"] = cursor
                kwargs["params"] = params

            data = self.request(method, path, **kwargs)
            yield data

            if not data.get("has_more", False):
                break
            cursor = data.get("next_cursor")
            if cursor is None:
                break

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> NotionTransport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- internals ---------------------------------------------------------

    def _sleep_before_retry(
        self,
        method: str,
        path: str,
        attempt: int,
        reason: str,
        retry_after: float | None = None,
    ) -> None:
        delay = compute_backoff(
            attempt,
            base=self._config.retry_base_delay,
            maximum=self._config.retry_max_delay,
            jitter=self._config.retry_jitter,
            retry_after=retry_after,
        )
        self._metrics.increment(
            "docimport.retries_total",
            tags={"method": method, "path": path, "reason": reason},
        )
        time.sleep(delay)
