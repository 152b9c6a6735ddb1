"""Full error hierarchy for docimport.

Every public error class inherits from :class:`DocImportError`. Each carries
a machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.

Per-item failures inside a converter are not raised one by one; they are
collected in a :class:`ConvertError` aggregate keyed by the path or object
they belong to, and the request mode decides whether the converter stops
at the first one.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Any

from docimport.models import ImportMode, ImportType

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error docimport can raise."""

    CANCELLED = "CANCELLED"
    CONVERSION_ERROR = "CONVERSION_ERROR"
    NO_OBJECTS_TO_IMPORT = "NO_OBJECTS_TO_IMPORT"
    SOURCE_ERROR = "SOURCE_ERROR"
    UPLOAD_ERROR = "UPLOAD_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class DocImportError(Exception):
    """Base exception for all docimport errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Import lifecycle errors
# ---------------------------------------------------------------------------

class CancelError(DocImportError):
    """The progress sink was cancelled while a converter was running."""

    def __init__(
        self,
        message: str = "import was cancelled",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CANCELLED,
            message=message,
            context=context,
            cause=cause,
        )


class NoObjectsToImportError(DocImportError):
    """The request was valid but produced nothing to import.

    Context keys: ``path`` when a single input was rejected.
    """

    def __init__(
        self,
        message: str = "no objects to import",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NO_OBJECTS_TO_IMPORT,
            message=message,
            context=context,
            cause=cause,
        )


class SourceError(DocImportError):
    """A file, directory, or archive could not be opened or read.

    Context keys: ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.SOURCE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class UploadError(DocImportError):
    """The file store rejected a binary upload.

    Context keys: ``source`` (local path or URL).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UPLOAD_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ConvertError(DocImportError):
    """Aggregate of per-item failures collected while converting.

    Keys are file paths for file based converters and Notion object IDs
    (or endpoint paths) for the Notion converter.  Insertion order is
    preserved so the first failure is always reported first.
    """

    def __init__(
        self,
        errors: dict[str, Exception] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.errors: dict[str, Exception] = dict(errors or {})
        super().__init__(
            code=ErrorCode.CONVERSION_ERROR,
            message="conversion failed",
            context=context,
        )

    @classmethod
    def from_error(cls, key: str, error: Exception) -> ConvertError:
        """Build an aggregate holding a single failure."""
        return cls({key: error})

    def add(self, key: str, error: Exception) -> None:
        self.errors[key] = error

    def merge(self, other: ConvertError | None) -> None:
        if other is None:
            return
        for key, error in other.errors.items():
            self.errors[key] = error

    def is_empty(self) -> bool:
        return not self.errors

    def items(self) -> Iterator[tuple[str, Exception]]:
        return iter(self.errors.items())

    def is_cancelled(self) -> bool:
        return any(isinstance(e, CancelError) for e in self.errors.values())

    def should_abort(self, mode: ImportMode) -> bool:
        """Return ``True`` when *mode* requires stopping at this point.

        Inputs that were rejected because they are not importable at all
        (:class:`NoObjectsToImportError`) never abort the run.
        """
        if mode != ImportMode.ALL_OR_NOTHING:
            return False
        return any(
            not isinstance(e, NoObjectsToImportError) for e in self.errors.values()
        )

    def get_result_error(self, import_type: ImportType) -> DocImportError | None:
        """Classify the aggregate into the single error surfaced to callers.

        Parameters
        ----------
        import_type:
            The request type, recorded in the classified error's context.

        Returns
        -------
        DocImportError | None
            ``None`` when nothing failed, a :class:`NoObjectsToImportError`
            when every recorded entry is one, the first :class:`CancelError`
            when the run was cancelled, else the aggregate itself.
        """
        if self.is_empty():
            return None
        values = list(self.errors.values())
        if all(isinstance(e, NoObjectsToImportError) for e in values):
            return NoObjectsToImportError(
                context={"import_type": import_type.value, "paths": list(self.errors)},
            )
        for error in values:
            if isinstance(error, CancelError):
                return error
        self.context.setdefault("import_type", import_type.value)
        return self

    def __str__(self) -> str:
        parts = [f"{key}: {error}" for key, error in self.errors.items()]
        return f"{self.message}: " + "; ".join(parts) if parts else self.message

    def __repr__(self) -> str:
        return f"ConvertError(errors={self.errors!r})"


# ---------------------------------------------------------------------------
# Notion API / transport errors
# ---------------------------------------------------------------------------

class NotionError(DocImportError):
    """Base class for failures reported by (or while talking to) Notion.

    Context keys: ``status_code``, ``notion_code``, ``method``, ``path``.
    """

    @property
    def status_code(self) -> int | None:
        return self.context.get("status_code")

    @property
    def notion_code(self) -> str:
        return self.context.get("notion_code", "")


class NotionValidationError(NotionError):
    """Notion rejected the request shape (``invalid_request``,
    ``invalid_request_url``, ``invalid_json``, ``validation_error``).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class NotionAuthError(NotionError):
    """The API key is invalid or was revoked (``unauthorized``)."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.AUTH_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class NotionPermissionError(NotionError):
    """The integration was not shared the object (``restricted_resource``)."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PERMISSION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class NotionNotFoundError(NotionError):
    """The object does not exist or is not visible (``object_not_found``)."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )


class NotionRateLimitError(NotionError):
    """Notion throttled the integration (``rate_limited``).

    Context keys: ``retry_after`` (seconds, when the header was present).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.RATE_LIMITED,
            message=message,
            context=context,
            cause=cause,
        )


class NotionInternalError(NotionError):
    """Notion failed on its side (``internal_server_error``,
    ``service_unavailable``, ``database_connection_unavailable`` ...).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INTERNAL_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class NotionNetworkError(NotionError):
    """The request never produced a response (DNS, TLS, timeout ...)."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class NotionRetryExhaustedError(NotionError):
    """Transport-level retries were used up.

    Context keys: ``attempts``, ``last_status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.RETRY_EXHAUSTED,
            message=message,
            context=context,
            cause=cause,
        )
