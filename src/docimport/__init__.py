"""docimport: HTML, Markdown and Notion importers producing object snapshots.

Public re-exports
-----------------

* **Importer:** :class:`Importer`, :class:`ConverterRegistry`,
  :func:`default_registry`
* **Converters:** :class:`HTMLConverter`, :class:`MarkdownConverter`,
  :class:`NotionConverter`, :class:`TokenValidator`
* **Configuration:** :class:`ImportConfig`
* **Errors:** Every :class:`DocImportError` subclass and :class:`ErrorCode`
* **Models:** Snapshots, blocks, relations, requests and results

Usage::

    from docimport import Importer, ImportRequest, ImportType, Progress

    importer = Importer(None, object_store, file_store)
    result = importer.import_(
        ImportRequest(type=ImportType.NOTION, api_key="secret_xxx"),
        Progress(),
    )
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from docimport.config import ImportConfig

# ── Errors ──────────────────────────────────────────────────────────────
from docimport.errors import (
    CancelError,
    ConvertError,
    DocImportError,
    ErrorCode,
    NoObjectsToImportError,
    NotionAuthError,
    NotionError,
    NotionInternalError,
    NotionNetworkError,
    NotionNotFoundError,
    NotionPermissionError,
    NotionRateLimitError,
    NotionRetryExhaustedError,
    NotionValidationError,
    SourceError,
    UploadError,
)

# ── Host contracts ──────────────────────────────────────────────────────
from docimport.host import FileStore, ObjectStore

# ── Importer ────────────────────────────────────────────────────────────
from docimport.importer import Importer
from docimport.importers import (
    Converter,
    ConverterRegistry,
    HTMLConverter,
    MarkdownConverter,
    NotionConverter,
    TokenValidator,
    ValidateTokenResult,
    default_registry,
)

# ── Models ──────────────────────────────────────────────────────────────
from docimport.models import (
    Block,
    DetailKey,
    ImportMode,
    ImportRequest,
    ImportResult,
    ImportType,
    ObjectKind,
    Relation,
    RelationFormat,
    Response,
    Snapshot,
)
from docimport.progress import Progress
from docimport.reconciler import FileSyncer, RelationReconciler

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Importer
    "Importer",
    "ConverterRegistry",
    "default_registry",
    "RelationReconciler",
    "FileSyncer",
    "Progress",
    # Converters
    "Converter",
    "HTMLConverter",
    "MarkdownConverter",
    "NotionConverter",
    "TokenValidator",
    "ValidateTokenResult",
    # Configuration
    "ImportConfig",
    # Host contracts
    "ObjectStore",
    "FileStore",
    # Error base + code enum
    "DocImportError",
    "ErrorCode",
    # Import lifecycle errors
    "CancelError",
    "ConvertError",
    "NoObjectsToImportError",
    "SourceError",
    "UploadError",
    # Notion errors
    "NotionError",
    "NotionValidationError",
    "NotionAuthError",
    "NotionPermissionError",
    "NotionNotFoundError",
    "NotionRateLimitError",
    "NotionInternalError",
    "NotionNetworkError",
    "NotionRetryExhaustedError",
    # Models
    "Block",
    "DetailKey",
    "ImportMode",
    "ImportRequest",
    "ImportResult",
    "ImportType",
    "ObjectKind",
    "Relation",
    "RelationFormat",
    "Response",
    "Snapshot",
]
