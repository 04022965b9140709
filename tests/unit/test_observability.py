"""Tests for the structured logger, metrics hook and notifiers."""

from __future__ import annotations

import io
import json
import logging
import sys

from shopmedia.models import NotifyLevel
from shopmedia.observability import (
    LoggingNotifier,
    MetricsHook,
    NoopMetricsHook,
    NoopNotifier,
    NotificationPort,
    StructuredFormatter,
    get_logger,
    resolve_metrics,
)

# ---------------------------------------------------------------------------
# StructuredFormatter
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    def _get_record(self, msg="hello", level=logging.INFO, extra_fields=None):
        record = logging.LogRecord(
            name="shopmedia.test",
            level=level,
            pathname="test.py",
            lineno=1,
            msg=msg,
            args=(),
            exc_info=None,
        )
        if extra_fields is not None:
            record.extra_fields = extra_fields
        return record

    def test_basic_keys(self):
        data = json.loads(StructuredFormatter().format(self._get_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "shopmedia.test"
        assert data["message"] == "hello"
        assert "ts" in data

    def test_extra_fields_merged(self):
        record = self._get_record(extra_fields={"op": "transcode", "in_bytes": 4096})
        data = json.loads(StructuredFormatter().format(record))
        assert data["op"] == "transcode"
        assert data["in_bytes"] == 4096

    def test_non_serialisable_values_stringified(self):
        record = self._get_record(extra_fields={"level": NotifyLevel.ERROR, "obj": object()})
        data = json.loads(StructuredFormatter().format(record))
        assert isinstance(data["obj"], str)

    def test_credentials_masked_at_any_depth(self):
        record = self._get_record(
            extra_fields={
                "op": "submit",
                "auth_token": "ntn_secret_value",
                "headers": {"Authorization": "Bearer abc", "accept": "application/json"},
            }
        )
        output = StructuredFormatter().format(record)
        data = json.loads(output)
        assert data["auth_token"] == "<redacted>"
        assert data["headers"] == {"Authorization": "<redacted>", "accept": "application/json"}
        assert "ntn_secret_value" not in output
        assert "Bearer abc" not in output

    def test_image_bytes_summarised(self):
        record = self._get_record(extra_fields={"data": b"\xff\xd8" * 500, "parts": [b"abc"]})
        data = json.loads(StructuredFormatter().format(record))
        assert data["data"] == "<binary:1000_bytes>"
        assert data["parts"] == ["<binary:3_bytes>"]

    def test_record_fields_not_mutated(self):
        fields = {"headers": {"authorization": "Bearer abc"}}
        StructuredFormatter().format(self._get_record(extra_fields=fields))
        assert fields["headers"]["authorization"] == "Bearer abc"

    def test_exception_included(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = self._get_record()
            record.exc_info = sys.exc_info()
        data = json.loads(StructuredFormatter().format(record))
        assert "ValueError: bad" in data["exception"]


class TestGetLogger:
    def test_writes_json_to_stream(self):
        stream = io.StringIO()
        log = get_logger("shopmedia.test.stream", stream=stream)
        log.info("ready", extra={"extra_fields": {"op": "select"}})
        data = json.loads(stream.getvalue().strip())
        assert data["message"] == "ready"
        assert data["op"] == "select"

    def test_idempotent(self):
        a = get_logger("shopmedia.test.idem", stream=io.StringIO())
        b = get_logger("shopmedia.test.idem", stream=io.StringIO())
        assert a is b
        assert len(a.handlers) == 1

    def test_string_level(self):
        log = get_logger("shopmedia.test.level", level="warning", stream=io.StringIO())
        assert log.level == logging.WARNING


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


class TestMetricsHook:
    def test_noop_satisfies_protocol(self):
        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_recording_hook_satisfies_protocol(self, metrics):
        assert isinstance(metrics, MetricsHook)

    def test_noop_accepts_all_calls(self):
        hook = NoopMetricsHook()
        hook.increment("x")
        hook.increment("x", 2, tags={"a": "b"})
        hook.timing("t", 1.5)
        hook.gauge("g", 3)

    def test_resolve_none_gives_noop(self):
        assert isinstance(resolve_metrics(None), NoopMetricsHook)

    def test_resolve_passes_through(self, metrics):
        assert resolve_metrics(metrics) is metrics


# ---------------------------------------------------------------------------
# Notifiers
# ---------------------------------------------------------------------------


class TestNotifiers:
    def test_noop_notifier(self):
        notifier = NoopNotifier()
        assert isinstance(notifier, NotificationPort)
        notifier.notify(NotifyLevel.ERROR, "ignored")

    def test_recording_notifier_satisfies_protocol(self, notifier):
        assert isinstance(notifier, NotificationPort)

    def test_logging_notifier_levels(self):
        stream = io.StringIO()
        notifier = LoggingNotifier(get_logger("shopmedia.test.notify", stream=stream))
        notifier.notify(NotifyLevel.SUCCESS, "Added 2 optimized image(s)")
        notifier.notify(NotifyLevel.ERROR, "Maximum 10 gallery images allowed")

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert [line["level"] for line in lines] == ["INFO", "ERROR"]
        assert lines[0]["notify_level"] == "success"
        assert lines[1]["message"] == "Maximum 10 gallery images allowed"
        assert all(line["op"] == "notify" for line in lines)
