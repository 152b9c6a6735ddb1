"""Unit tests for retries.py and rate_limit.py.

Targets:
  - retries.py:   should_retry, compute_backoff, retry_fixed
  - rate_limit.py: TokenBucket
"""
from __future__ import annotations

import threading
from unittest.mock import MagicMock, patch

import httpx
import pytest

from docimport.errors import NotionAuthError, NotionInternalError, NotionNetworkError
from docimport.notion_api.rate_limit import TokenBucket
from docimport.notion_api.retries import compute_backoff, retry_fixed, should_retry

# ---------------------------------------------------------------------------
# should_retry
# ---------------------------------------------------------------------------


class TestShouldRetry:
    def test_false_on_last_attempt(self):
        assert should_retry(500, None, attempt=2, max_attempts=3) is False

    def test_single_attempt_never_retries(self):
        assert should_retry(429, None, attempt=0, max_attempts=1) is False

    def test_timeout_is_retryable(self):
        exc = httpx.ReadTimeout("timed out", request=MagicMock())
        assert should_retry(None, exc, attempt=0, max_attempts=3) is True

    def test_connect_error_is_retryable(self):
        assert should_retry(None, httpx.ConnectError("refused"), attempt=0, max_attempts=3) is True

    def test_other_exception_not_retryable(self):
        assert should_retry(None, RuntimeError("x"), attempt=0, max_attempts=3) is False

    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_retryable_statuses(self, status):
        assert should_retry(status, None, attempt=0, max_attempts=3) is True

    @pytest.mark.parametrize("status", [200, 400, 401, 403, 404, 409])
    def test_non_retryable_statuses(self, status):
        assert should_retry(status, None, attempt=0, max_attempts=3) is False

    def test_nothing_known(self):
        assert should_retry(None, None, attempt=0, max_attempts=3) is False


# ---------------------------------------------------------------------------
# compute_backoff
# ---------------------------------------------------------------------------


class TestComputeBackoff:
    def test_exponential(self):
        assert [compute_backoff(a, base=1.0, jitter=False) for a in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_capped(self):
        assert compute_backoff(10, base=1.0, maximum=5.0, jitter=False) == 5.0

    def test_retry_after_wins(self):
        assert compute_backoff(3, base=1.0, jitter=False, retry_after=0.25) == 0.25

    @patch("docimport.notion_api.retries.random.random", return_value=0.0)
    def test_jitter_halves_at_minimum(self, _):
        assert compute_backoff(1, base=1.0, jitter=True) == 1.0


# ---------------------------------------------------------------------------
# retry_fixed
# ---------------------------------------------------------------------------


class TestRetryFixed:
    def test_first_success_no_sleep(self):
        sleep = MagicMock()
        assert retry_fixed(lambda: 42, attempts=5, delay=1.0, sleep=sleep) == 42
        sleep.assert_not_called()

    def test_retries_transient_errors(self):
        sleep = MagicMock()
        calls = {"n": 0}

        def op():
            calls["n"] += 1
            if calls["n"] < 3:
                raise NotionInternalError("busy")
            return "ok"

        assert retry_fixed(op, attempts=5, delay=1.5, sleep=sleep) == "ok"
        assert calls["n"] == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1.5, 1.5]

    def test_last_error_propagates(self):
        sleep = MagicMock()

        def op():
            raise NotionNetworkError("down")

        with pytest.raises(NotionNetworkError):
            retry_fixed(op, attempts=3, delay=0.0, sleep=sleep)
        assert sleep.call_count == 2

    def test_non_transient_propagates_at_once(self):
        sleep = MagicMock()
        op = MagicMock(side_effect=NotionAuthError("bad key"))
        with pytest.raises(NotionAuthError):
            retry_fixed(op, attempts=5, delay=0.0, sleep=sleep)
        assert op.call_count == 1
        sleep.assert_not_called()

    def test_zero_attempts_rejected(self):
        with pytest.raises(ValueError):
            retry_fixed(lambda: 1, attempts=0, delay=0.0)


# ---------------------------------------------------------------------------
# TokenBucket
# ---------------------------------------------------------------------------


class TestTokenBucket:
    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            TokenBucket(rate_rps=0)
        with pytest.raises(ValueError):
            TokenBucket(rate_rps=1, burst=0)

    def test_burst_without_wait(self):
        bucket = TokenBucket(rate_rps=1.0, burst=3)
        assert [bucket.acquire() for _ in range(3)] == [0.0, 0.0, 0.0]

    @patch("docimport.notion_api.rate_limit.time.sleep")
    def test_waits_when_empty(self, mock_sleep):
        bucket = TokenBucket(rate_rps=2.0, burst=1)
        bucket.acquire()
        wait = bucket.acquire()
        assert wait > 0
        mock_sleep.assert_called_once()

    def test_thread_safety(self):
        bucket = TokenBucket(rate_rps=100_000.0, burst=1000)
        errors: list[Exception] = []

        def worker():
            try:
                for _ in range(100):
                    bucket.acquire()
            except Exception as exc:  # pragma: no cover
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []
        assert bucket.tokens <= bucket.burst
