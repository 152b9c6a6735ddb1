"""Tests for the Importer dispatcher.

Covers:
- HTML and Markdown imports end to end against in-memory stores
- Empty results reported as NoObjectsToImportError
- Object creation failures per ImportMode
- Unknown import types and cancellation
- Relations and file blocks settled after creation
- A Notion import through a custom registry
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from docimport.errors import (
    CancelError,
    ConvertError,
    DocImportError,
    ErrorCode,
    NoObjectsToImportError,
    SourceError,
)
from docimport.importer import Importer
from docimport.importers.notion import NotionConverter
from docimport.importers.registry import ConverterRegistry
from docimport.importers.root_collection import build_root_collection
from docimport.models import (
    Block,
    DetailKey,
    File,
    ImportMode,
    ImportRequest,
    ImportType,
    ObjectKind,
    Relation,
    RelationBlock,
    RelationFormat,
    Response,
    Snapshot,
)


def html_request(*paths, mode=ImportMode.ALL_OR_NOTHING):
    return ImportRequest(type=ImportType.HTML, mode=mode, paths=[str(p) for p in paths])


@pytest.fixture
def importer(object_store, file_store, config):
    return Importer(None, object_store, file_store, config)


@pytest.fixture
def html_files(tmp_path):
    first = tmp_path / "first.html"
    second = tmp_path / "second.html"
    first.write_text("<h1>First</h1><p>one</p>", encoding="utf-8")
    second.write_text("<p>two</p>", encoding="utf-8")
    return first, second


def stub_registry(response, errors=None):
    converter = MagicMock()
    converter.name.return_value = "stub"
    converter.get_snapshots.return_value = (response, errors)
    registry = ConverterRegistry()
    registry.register(ImportType.PB, lambda cfg: converter)
    return registry


# ---------------------------------------------------------------------------
# File based imports
# ---------------------------------------------------------------------------


class TestHTMLImport:
    def test_pages_and_root_created(self, importer, object_store, progress, html_files):
        result = importer.import_(html_request(*html_files), progress)
        assert result.error is None
        assert len(result.object_ids) == 3
        assert set(result.object_ids) == set(object_store.objects)
        root = object_store.objects[result.root_collection_id]
        assert root.kind == ObjectKind.COLLECTION
        assert set(root.collections) == set(result.object_ids) - {result.root_collection_id}

    def test_progress_completes(self, importer, progress, html_files):
        importer.import_(html_request(*html_files), progress)
        # two pages, two stages each; the root is created on top
        assert progress.total == 4
        assert progress.current == 5

    def test_only_unsupported_files(self, importer, object_store, progress, tmp_path):
        other = tmp_path / "notes.txt"
        other.write_text("x")
        result = importer.import_(html_request(other), progress)
        assert isinstance(result.error, NoObjectsToImportError)
        assert result.error.context["paths"] == [str(other)]
        assert object_store.objects == {}

    def test_no_paths(self, importer, progress):
        result = importer.import_(html_request(), progress)
        assert isinstance(result.error, NoObjectsToImportError)
        assert result.error.context["import_type"] == "html"
        assert result.object_ids == []

    def test_create_failure_aborts(self, importer, object_store, progress, html_files):
        first, _ = html_files
        object_store.fail_objects = {str(first)}
        result = importer.import_(html_request(*html_files), progress)
        assert result.object_ids == []
        assert isinstance(result.error, ConvertError)
        assert str(first) in result.error.errors

    def test_create_failure_ignored(self, importer, object_store, progress, html_files):
        first, _ = html_files
        object_store.fail_objects = {str(first)}
        result = importer.import_(html_request(*html_files, mode=ImportMode.IGNORE_ERRORS), progress)
        assert len(result.object_ids) == 2
        assert result.root_collection_id is not None
        assert list(result.error.errors) == [str(first)]

    def test_cancelled(self, importer, progress, html_files):
        progress.cancel()
        with pytest.raises(CancelError):
            importer.import_(html_request(*html_files), progress)


class TestMarkdownImport:
    def test_directory(self, importer, object_store, progress, tmp_path):
        notes = tmp_path / "notes"
        notes.mkdir()
        (notes / "a.md").write_text("# A\n\n[B](b.md)\n", encoding="utf-8")
        (notes / "b.md").write_text("# B\n\nbody\n", encoding="utf-8")
        req = ImportRequest(type=ImportType.MARKDOWN, paths=[str(notes)])

        result = importer.import_(req, progress)

        assert result.error is None
        assert result.root_collection_id in object_store.objects
        pages = [s for s in object_store.objects.values() if s.kind == ObjectKind.PAGE]
        assert len(pages) == 2


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class TestDispatch:
    def test_unknown_type(self, object_store, file_store, progress):
        importer = Importer(ConverterRegistry(), object_store, file_store)
        with pytest.raises(DocImportError) as exc_info:
            importer.import_(ImportRequest(type=ImportType.PB), progress)
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    def test_converter_errors_abort_before_creation(self, object_store, file_store, progress):
        page = Snapshot(id="p1", file_name="p1", details={DetailKey.NAME: "P"})
        response = Response(snapshots=[page, build_root_collection("Root", ["p1"])])
        errors = ConvertError({"bad": SourceError("broken")})
        importer = Importer(stub_registry(response, errors), object_store, file_store)

        result = importer.import_(ImportRequest(type=ImportType.PB), progress)

        assert isinstance(result.error, ConvertError)
        assert list(result.error.errors) == ["bad"]
        assert object_store.objects == {}

    def test_converter_errors_ignored(self, object_store, file_store, progress):
        page = Snapshot(id="p1", file_name="p1", details={DetailKey.NAME: "P"})
        response = Response(snapshots=[page, build_root_collection("Root", ["p1"])])
        errors = ConvertError({"bad": SourceError("broken")})
        importer = Importer(stub_registry(response, errors), object_store, file_store)

        result = importer.import_(ImportRequest(type=ImportType.PB, mode=ImportMode.IGNORE_ERRORS), progress)

        assert "p1" in result.object_ids
        assert isinstance(result.error, ConvertError)
        assert list(result.error.errors) == ["bad"]

    def test_relations_and_files_settled(self, object_store, file_store, progress):
        relation_block = Block(id="rb1", content=RelationBlock(key="conv-key"))
        file_block = Block(id="f1", content=File(source="https://example.com/a.png"))
        page = Snapshot(
            id="p1", file_name="p1",
            blocks=[relation_block, file_block],
            details={DetailKey.NAME: "P", "conv-key": "hello"},
        )
        edge = Relation(name="Note", format=RelationFormat.SHORT_TEXT, key="conv-key", block_id="rb1")
        response = Response(snapshots=[page], relations={"p1": [edge]})
        importer = Importer(stub_registry(response), object_store, file_store)

        result = importer.import_(ImportRequest(type=ImportType.PB), progress)

        assert result.error is None
        key = object_store.relations[("Note", RelationFormat.SHORT_TEXT)]
        assert object_store.details["p1"] == {key: "hello"}
        assert object_store.extra_relations["p1"] == [key]
        assert file_store.uploads == ["https://example.com/a.png"]
        assert [block_id for _, block_id, _ in object_store.replaced] == ["rb1", "f1"]

    def test_file_store_failures_do_not_abort(self, object_store, file_store, progress):
        object_store.replace_block = MagicMock(side_effect=RuntimeError("host replace failed"))
        page = Snapshot(
            id="p1", file_name="p1",
            blocks=[Block(id="f1", content=File(source="https://example.com/a.png"))],
            details={DetailKey.NAME: "P"},
        )
        importer = Importer(stub_registry(Response(snapshots=[page])), object_store, file_store)

        result = importer.import_(ImportRequest(type=ImportType.PB), progress)

        assert result.error is None
        assert result.object_ids == ["p1"]
        assert page.blocks[0].content.hash == ""


# ---------------------------------------------------------------------------
# Notion
# ---------------------------------------------------------------------------


def _rt(text):
    return {"type": "text", "plain_text": text}


def _row(page_id, title):
    return {
        "object": "page",
        "id": page_id,
        "url": f"https://www.notion.so/{page_id}",
        "parent": {"type": "database_id", "database_id": "db1"},
        "properties": {
            "Name": {"id": "title", "type": "title", "title": [_rt(title)]},
            "Tag": {"id": "tag", "type": "select", "select": {"name": "A", "color": "gray"}},
        },
    }


class TestNotionImport:
    @pytest.fixture
    def registry(self, notion):
        notion.databases = [{
            "object": "database",
            "id": "db1",
            "url": "https://www.notion.so/db1",
            "title": [_rt("Tasks")],
            "parent": {"type": "workspace", "workspace": True},
            "properties": {
                "Name": {"id": "title", "type": "title", "title": {}},
                "Tag": {"id": "tag", "type": "select", "select": {}},
            },
        }]
        notion.pages = [_row("r1", "One"), _row("r2", "Two")]
        registry = ConverterRegistry()
        registry.register(ImportType.NOTION, lambda cfg: NotionConverter(cfg, http_transport=notion.transport))
        return registry

    def test_rows_share_relation_and_option(self, registry, object_store, file_store, config, progress):
        importer = Importer(registry, object_store, file_store, config)
        req = ImportRequest(type=ImportType.NOTION, api_key="secret_key")

        result = importer.import_(req, progress)

        assert result.error is None
        # database, two rows and the root collection
        assert len(result.object_ids) == 4
        key = object_store.relations[("Tag", RelationFormat.TAG)]
        option_id = object_store.options[key]["A"]
        rows = [s.id for s in object_store.objects.values() if s.kind == ObjectKind.PAGE]
        assert len(rows) == 2
        for row_id in rows:
            assert object_store.details[row_id] == {key: [option_id]}
            assert object_store.extra_relations[row_id] == [key]
