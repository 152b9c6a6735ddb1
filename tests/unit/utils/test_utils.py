"""Tests for docimport.utils: identifiers, UTF-16 helpers and URI checks."""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from docimport.utils import (
    is_remote,
    is_whole_line,
    new_block_id,
    new_object_id,
    new_option_id,
    new_relation_key,
    relation_id,
    utf16_len,
    utf16_slice,
    validate_uri,
)

# ---------------------------------------------------------------------------
# ids
# ---------------------------------------------------------------------------


class TestIds:
    def test_block_id_shape(self):
        block_id = new_block_id()
        assert len(block_id) == 24
        int(block_id, 16)

    def test_object_ids_unique(self):
        assert len({new_object_id() for _ in range(1000)}) == 1000

    def test_relation_id_prefix(self):
        key = new_relation_key()
        assert relation_id(key) == f"rel-{key}"

    def test_option_id_prefix(self):
        assert new_option_id().startswith("opt-")


# ---------------------------------------------------------------------------
# text
# ---------------------------------------------------------------------------


class TestUtf16:
    def test_ascii(self):
        assert utf16_len("hello") == 5

    def test_astral_counts_two(self):
        assert utf16_len("\U0001f600") == 2
        assert utf16_len("a\U0001f600b") == 4

    def test_bmp_non_ascii_counts_one(self):
        assert utf16_len("é中") == 2

    def test_slice(self):
        text = "a\U0001f600bc"
        assert utf16_slice(text, 1, 3) == "\U0001f600"
        assert utf16_slice(text, 3, 5) == "bc"

    @given(st.text())
    @settings(max_examples=200)
    def test_len_matches_full_slice(self, text):
        assert utf16_slice(text, 0, utf16_len(text)) == text

    @given(st.text(), st.text())
    @settings(max_examples=200)
    def test_len_is_additive(self, a, b):
        assert utf16_len(a + b) == utf16_len(a) + utf16_len(b)


class TestIsWholeLine:
    def test_whole_line(self):
        assert is_whole_line("  link ", 2, 6) is True

    def test_inline(self):
        assert is_whole_line("see link here", 4, 8) is False

    def test_astral_offsets(self):
        text = "\U0001f600 link"
        # emoji takes two units, the space one
        assert is_whole_line(text, 3, 7) is False
        assert is_whole_line(text, 0, 7) is True


# ---------------------------------------------------------------------------
# uri
# ---------------------------------------------------------------------------


class TestUri:
    @pytest.mark.parametrize(
        "value",
        ["https://example.com/a", "http://x.org", "mailto:a@b.c", "ftp://host/file"],
    )
    def test_valid(self, value):
        assert validate_uri(value) is True

    @pytest.mark.parametrize(
        "value",
        ["", "notes/b.md", "C:/dir/file.md", "https://", "https://exa mple.com", "http:///path"],
    )
    def test_invalid(self, value):
        assert validate_uri(value) is False

    def test_is_remote(self):
        assert is_remote("https://example.com/a.png")
        assert not is_remote("/tmp/a.png")
        assert not is_remote("file:///tmp/a.png")
