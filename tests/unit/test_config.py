"""Tests for ImportConfig validation, token masking and with_token."""

from __future__ import annotations

import pytest

from docimport.config import ImportConfig


class TestValidation:
    def test_defaults_are_valid(self):
        cfg = ImportConfig()
        assert cfg.base_url == "https://api.notion.com/v1"
        assert cfg.search_retry_attempts == 5
        assert cfg.retry_max_attempts == 1

    def test_insecure_remote_url_rejected(self):
        with pytest.raises(ValueError, match="insecure HTTP"):
            ImportConfig(base_url="http://example.com/v1")

    def test_http_localhost_allowed(self):
        assert ImportConfig(base_url="http://localhost:8080/v1").base_url.startswith("http://")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"page_size": 0},
            {"page_size": 101},
            {"search_retry_attempts": 0},
            {"search_retry_delay": -1},
            {"retry_max_attempts": 0},
            {"retry_base_delay": -0.1},
            {"retry_max_delay": -1},
            {"rate_limit_rps": 0},
            {"timeout_seconds": 0},
            {"max_workers": 0},
            {"max_workers": 9},
            {"max_block_depth": 0},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            ImportConfig(**overrides)


class TestToken:
    def test_repr_masks_token(self):
        text = repr(ImportConfig(token="secret_abcdef1234"))
        assert "secret_abcdef1234" not in text
        assert "...1234" in text

    def test_repr_masks_short_token(self):
        assert "token='****'" in repr(ImportConfig(token="ab"))

    def test_with_token_returns_copy(self):
        base = ImportConfig(max_workers=2)
        cfg = base.with_token("secret_x")
        assert cfg.token == "secret_x"
        assert cfg.max_workers == 2
        assert base.token == ""
