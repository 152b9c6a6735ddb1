"""Tests for the converter registry and the Notion token validator."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from docimport.errors import DocImportError, ErrorCode
from docimport.importers.html import HTMLConverter
from docimport.importers.markdown import MarkdownConverter
from docimport.importers.notion import NotionConverter, TokenValidator, ValidateTokenResult
from docimport.importers.registry import ConverterRegistry, default_registry
from docimport.models import ImportType


class TestRegistry:
    def test_default_types(self):
        registry = default_registry()
        assert registry.types() == [ImportType.HTML, ImportType.MARKDOWN, ImportType.NOTION]

    @pytest.mark.parametrize(
        ("import_type", "cls"),
        [
            (ImportType.HTML, HTMLConverter),
            (ImportType.MARKDOWN, MarkdownConverter),
            (ImportType.NOTION, NotionConverter),
        ],
    )
    def test_default_factories(self, config, import_type, cls):
        assert isinstance(default_registry().get(import_type, config), cls)

    def test_unknown_type(self, config):
        with pytest.raises(DocImportError) as exc_info:
            default_registry().get(ImportType.PB, config)
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert exc_info.value.context["import_type"] == str(ImportType.PB)

    def test_register_custom(self, config):
        registry = ConverterRegistry()
        converter = MagicMock()
        registry.register(ImportType.PB, lambda cfg: converter)
        assert ImportType.PB in registry
        assert ImportType.HTML not in registry
        assert registry.get(ImportType.PB, config) is converter

    def test_register_replaces(self, config):
        registry = ConverterRegistry()
        first, second = MagicMock(), MagicMock()
        registry.register(ImportType.HTML, lambda cfg: first)
        registry.register(ImportType.HTML, lambda cfg: second)
        assert registry.get(ImportType.HTML, config) is second
        assert registry.types() == [ImportType.HTML]


class TestTokenValidator:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (200, ValidateTokenResult.OK),
            (401, ValidateTokenResult.UNAUTHORIZED),
            (500, ValidateTokenResult.INTERNAL),
        ],
    )
    def test_status_mapping(self, config, notion, status, expected):
        notion.users_status = status
        validator = TokenValidator(config, http_transport=notion.transport)
        assert validator.validate("secret_check") == expected

    def test_single_users_request(self, config, notion):
        TokenValidator(config, http_transport=notion.transport).validate("secret_check")
        assert notion.requests == [("GET", "/users")]
        assert notion.auth_headers == ["Bearer secret_check"]
