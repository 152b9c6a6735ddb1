"""Source format converters and the registry that selects them."""

from __future__ import annotations

from .base import Converter
from .html import HTMLConverter
from .markdown import MarkdownConverter
from .notion import NotionConverter, TokenValidator, ValidateTokenResult
from .registry import ConverterFactory, ConverterRegistry, default_registry
from .root_collection import build_root_collection

__all__ = [
    "Converter",
    "ConverterFactory",
    "ConverterRegistry",
    "HTMLConverter",
    "MarkdownConverter",
    "NotionConverter",
    "TokenValidator",
    "ValidateTokenResult",
    "build_root_collection",
    "default_registry",
]
