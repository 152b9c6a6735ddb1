"""Metrics hook protocol and no-op default implementation.

The importer and the Notion client report counters and timings through a
:class:`MetricsHook`.  :class:`NoopMetricsHook` is used when the caller
does not configure one.

Emitted metric names:

* ``docimport.requests_total``          -- counter
* ``docimport.retries_total``           -- counter
* ``docimport.request_duration_ms``     -- timing
* ``docimport.rate_limit_wait_ms``      -- timing
* ``docimport.snapshots_total``         -- counter (tag ``converter``)
* ``docimport.convert_errors_total``    -- counter (tag ``converter``)
* ``docimport.relations_created_total`` -- counter
* ``docimport.files_uploaded_total``    -- counter
* ``docimport.import_duration_ms``      -- timing
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    *tags* is an optional ``str -> str`` mapping translated by the backend
    into its own tagging scheme.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...


class NoopMetricsHook:
    """Metrics implementation that discards every data point."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
