"""Tests for the file, directory and zip source readers."""

from __future__ import annotations

import zipfile

import pytest

from docimport.errors import SourceError
from docimport.source import (
    DirectorySource,
    FileSource,
    ZipSource,
    get_source,
    has_extension,
)


def _write_zip(path, entries):
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)


class TestGetSource:
    def test_dispatch(self, tmp_path):
        (tmp_path / "a.md").write_text("x")
        assert isinstance(get_source(str(tmp_path / "bundle.ZIP")), ZipSource)
        assert isinstance(get_source(str(tmp_path)), DirectorySource)
        assert isinstance(get_source(str(tmp_path / "a.md")), FileSource)


class TestHasExtension:
    def test_case_insensitive(self):
        assert has_extension("Doc.HTML", [".html"])

    def test_none_accepts_all(self):
        assert has_extension("anything", None)

    def test_no_extension(self):
        assert not has_extension("README", [".md"])


class TestFileSource:
    def test_reader_named_by_basename(self, tmp_path):
        path = tmp_path / "note.md"
        path.write_bytes(b"# Title")
        readers = FileSource(str(path)).get_file_readers()
        assert list(readers) == ["note.md"]
        with readers["note.md"]() as fh:
            assert fh.read() == b"# Title"

    def test_filtered_out(self, tmp_path):
        path = tmp_path / "note.txt"
        path.write_bytes(b"x")
        assert FileSource(str(path)).get_file_readers([".md"]) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceError) as exc_info:
            FileSource(str(tmp_path / "missing.md")).get_file_readers()
        assert exc_info.value.context["path"].endswith("missing.md")


class TestDirectorySource:
    def test_relative_names_sorted(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "b.md").write_text("b")
        (tmp_path / "a.md").write_text("a")
        (tmp_path / "sub" / "c.md").write_text("c")
        (tmp_path / "img.png").write_bytes(b"\x89PNG")
        source = DirectorySource(str(tmp_path))
        assert list(source.get_file_readers([".md"])) == ["a.md", "b.md", "sub/c.md"]
        assert source.count_files() == 4

    def test_missing_directory(self, tmp_path):
        with pytest.raises(SourceError):
            DirectorySource(str(tmp_path / "nope")).get_file_readers()


class TestZipSource:
    def test_strips_folder_prefix_and_macos_metadata(self, tmp_path):
        path = tmp_path / "export.zip"
        _write_zip(path, {
            "export/page.md": "# Page",
            "export/sub/child.md": "child",
            "__MACOSX/export/._page.md": "junk",
            "other/file.md": "other",
        })
        with ZipSource(str(path)) as source:
            readers = source.get_file_readers([".md"])
            assert sorted(readers) == ["other/file.md", "page.md", "sub/child.md"]
            with readers["page.md"]() as fh:
                assert fh.read() == b"# Page"

    def test_extension_filter(self, tmp_path):
        path = tmp_path / "a.zip"
        _write_zip(path, {"x.md": "x", "y.png": "y"})
        with ZipSource(str(path)) as source:
            assert list(source.get_file_readers([".png"])) == ["y.png"]

    def test_bad_archive(self, tmp_path):
        path = tmp_path / "broken.zip"
        path.write_bytes(b"not a zip")
        with pytest.raises(SourceError) as exc_info:
            ZipSource(str(path)).get_file_readers()
        assert exc_info.value.cause is not None

    def test_close_is_idempotent(self, tmp_path):
        path = tmp_path / "a.zip"
        _write_zip(path, {"x.md": "x"})
        source = ZipSource(str(path))
        source.get_file_readers()
        source.close()
        source.close()
