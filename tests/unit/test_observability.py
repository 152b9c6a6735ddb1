"""Tests for observability/logger.py and observability/metrics.py"""
import io
import json
import logging
import sys

from docimport.observability import MetricsHook, NoopMetricsHook
from docimport.observability.logger import StructuredFormatter, get_logger


class TestStructuredFormatter:
    def _get_record(self, msg, level=logging.INFO, exc_info=None, extra_fields=None):
        record = logging.LogRecord(
            name="test",
            level=level,
            pathname="",
            lineno=0,
            msg=msg,
            args=(),
            exc_info=exc_info,
        )
        if extra_fields is not None:
            record.extra_fields = extra_fields
        return record

    def test_basic_format(self):
        result = json.loads(StructuredFormatter().format(self._get_record("hello world")))
        assert result["message"] == "hello world"
        assert result["level"] == "INFO"
        assert result["logger"] == "test"
        assert "ts" in result

    def test_extra_fields_merged(self):
        record = self._get_record("msg", extra_fields={"op": "fetch_blocks", "blocks": 5})
        result = json.loads(StructuredFormatter().format(record))
        assert result["op"] == "fetch_blocks"
        assert result["blocks"] == 5

    def test_exception_info_included(self):
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()
        result = json.loads(StructuredFormatter().format(self._get_record("boom", exc_info=exc_info)))
        assert "ValueError" in result["exception"]

    def test_non_serialisable_extra_uses_str(self):
        record = self._get_record("msg", extra_fields={"value": object()})
        result = json.loads(StructuredFormatter().format(record))
        assert result["value"].startswith("<object")


class TestGetLogger:
    def test_string_level(self):
        logger = get_logger("test.docimport.level", level="WARNING")
        assert logger.level == logging.WARNING

    def test_idempotent_no_duplicate_handlers(self):
        name = "test.docimport.idempotent"
        count = len(get_logger(name).handlers)
        assert len(get_logger(name).handlers) == count

    def test_custom_stream_receives_json(self):
        stream = io.StringIO()
        logger = get_logger("test.docimport.stream", stream=stream)
        logger.info("hello", extra={"extra_fields": {"op": "import"}})
        line = json.loads(stream.getvalue().strip())
        assert line["message"] == "hello"
        assert line["op"] == "import"


class TestNoopMetricsHook:
    def test_satisfies_protocol(self):
        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_methods_return_none(self):
        hook = NoopMetricsHook()
        assert hook.increment("docimport.requests_total") is None
        assert hook.timing("docimport.import_duration_ms", 1.5) is None
        assert hook.increment("docimport.snapshots_total", value=3, tags={"converter": "html"}) is None
