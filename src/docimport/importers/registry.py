"""Converter registry: import type -> converter factory.

The importer looks converters up by the request's format discriminator.
:func:`default_registry` registers every converter shipped with
docimport; callers add their own with :meth:`ConverterRegistry.register`.
"""

from __future__ import annotations

from collections.abc import Callable

from docimport.config import ImportConfig
from docimport.errors import DocImportError, ErrorCode
from docimport.models import ImportType

from .base import Converter
from .html import HTMLConverter
from .markdown import MarkdownConverter
from .notion import NotionConverter

ConverterFactory = Callable[[ImportConfig], Converter]


class ConverterRegistry:
    """Factories keyed by :class:`ImportType`, in registration order."""

    def __init__(self) -> None:
        self._factories: dict[ImportType, ConverterFactory] = {}

    def register(self, import_type: ImportType, factory: ConverterFactory) -> None:
        """Add or replace the factory for *import_type*."""
        self._factories[ImportType(import_type)] = factory

    def get(self, import_type: ImportType, config: ImportConfig) -> Converter:
        """Build the converter for *import_type*.

        Raises
        ------
        DocImportError
            ``VALIDATION_ERROR`` when nothing is registered for the type.
        """
        factory = self._factories.get(import_type)
        if factory is None:
            raise DocImportError(
                code=ErrorCode.VALIDATION_ERROR,
                message=f"no converter registered for import type {import_type!r}",
                context={"import_type": str(import_type)},
            )
        return factory(config)

    def types(self) -> list[ImportType]:
        return list(self._factories)

    def __contains__(self, import_type: object) -> bool:
        return import_type in self._factories


def default_registry() -> ConverterRegistry:
    """Registry holding the HTML, Markdown and Notion converters."""
    registry = ConverterRegistry()
    registry.register(ImportType.HTML, lambda config: HTMLConverter(metrics=config.metrics))
    registry.register(ImportType.MARKDOWN, lambda config: MarkdownConverter(config))
    registry.register(ImportType.NOTION, lambda config: NotionConverter(config))
    return registry
