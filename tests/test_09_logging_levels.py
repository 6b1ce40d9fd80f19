"""Tests for the numeric logging level system."""
from __future__ import annotations

import io
import json
import logging
import os
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    from eigo_ms.core.logging import configure_logging

    configure_logging(level=2, force=True)


class TestLogLevelEnum:

    def test_level_enum_values(self):
        from eigo_ms.core.logging import LogLevel

        assert LogLevel.MINIMAL == 1
        assert LogLevel.NORMAL == 2
        assert LogLevel.VERBOSE == 3
        assert LogLevel.DEBUG == 4

    def test_level_enum_ordering(self):
        from eigo_ms.core.logging import LogLevel

        assert LogLevel.MINIMAL < LogLevel.NORMAL < LogLevel.VERBOSE < LogLevel.DEBUG


class TestLevelCoercion:

    def test_level_from_int(self):
        from eigo_ms.core.logging import LogLevel, coerce_level

        assert coerce_level(1) == LogLevel.MINIMAL
        assert coerce_level(4) == LogLevel.DEBUG

    def test_level_from_names(self):
        from eigo_ms.core.logging import LogLevel, coerce_level

        assert coerce_level("minimal") == LogLevel.MINIMAL
        assert coerce_level("VERBOSE") == LogLevel.VERBOSE
        assert coerce_level("trace") == LogLevel.DEBUG
        assert coerce_level("3") == LogLevel.VERBOSE

    def test_level_from_python_levels(self):
        from eigo_ms.core.logging import LogLevel, coerce_level

        assert coerce_level("INFO") == LogLevel.NORMAL
        assert coerce_level("WARNING") == LogLevel.MINIMAL
        assert coerce_level(logging.WARNING) == LogLevel.MINIMAL
        assert coerce_level(logging.INFO) == LogLevel.NORMAL
        assert coerce_level(logging.DEBUG) == LogLevel.DEBUG

    def test_invalid_level_defaults_to_normal(self):
        from eigo_ms.core.logging import LogLevel, coerce_level

        assert coerce_level("invalid") == LogLevel.NORMAL
        assert coerce_level(None) == LogLevel.NORMAL
        assert coerce_level(True) == LogLevel.NORMAL


class TestLevelFiltering:

    def _emit(self, level):
        from eigo_ms.core.logging import configure_logging, debug, error, get_logger, info, verbose

        captured = io.StringIO()
        with patch("sys.stdout", captured):
            configure_logging(level=level, force=True)
            log = get_logger("eigo-ms.test")
            error(log, "error message")
            info(log, "info message")
            verbose(log, "verbose message")
            debug(log, "debug message")
        return captured.getvalue()

    def test_minimal(self):
        out = self._emit(1)
        assert "error message" in out
        assert "info message" not in out

    def test_normal(self):
        out = self._emit(2)
        assert "info message" in out
        assert "verbose message" not in out

    def test_verbose(self):
        out = self._emit(3)
        assert "verbose message" in out
        assert "debug message" not in out

    def test_debug(self):
        out = self._emit(4)
        assert "debug message" in out


class TestRequestIdPropagation:

    def test_request_id_in_log_output(self):
        from eigo_ms.core.logging import configure_logging, get_logger, info, set_request_id

        captured = io.StringIO()
        with patch("sys.stdout", captured):
            configure_logging(level=2, force=True)
            set_request_id("rid-abc123")
            info(get_logger("eigo-ms.test"), "lesson_request", category="daily")

        out = captured.getvalue()
        assert "rid-abc123" in out
        assert "category=daily" in out


class TestEnvOverride:

    def test_env_override_log_level(self):
        from eigo_ms.core.logging import LogLevel, configure_logging, get_level

        with patch.dict(os.environ, {"EIGO_MS_LOG_LEVEL": "3"}):
            configure_logging(force=True)
            assert get_level() == LogLevel.VERBOSE


class TestJsonlOutput:

    def test_jsonl_output_format(self, tmp_path):
        from eigo_ms.core.logging import configure_logging, get_logger, info

        with patch.dict(os.environ, {"EIGO_MS_LOG_DIR": str(tmp_path), "EIGO_MS_JSONL_FILE": "test.jsonl"}):
            configure_logging(level=2, force=True)
            info(get_logger("eigo-ms.test"), "lesson_ready", category="business", seconds=1.5)

            root = logging.getLogger()
            for handler in root.handlers:
                handler.flush()
                handler.close()
            root.handlers = []

        lines = [line for line in (tmp_path / "test.jsonl").read_text(encoding="utf-8").splitlines() if line]
        records = [json.loads(line) for line in lines]
        record = next(r for r in records if r["message"] == "lesson_ready")
        assert record["level"] == 2
        assert record["tag"] == "INFO"
        assert record["seconds"] == 1.5
        assert record["extra"] == {"category": "business"}


class TestGetLevelName:

    def test_get_level_name(self):
        from eigo_ms.core.logging import configure_logging, get_level_name

        for level, name in [(1, "MINIMAL"), (2, "NORMAL"), (3, "VERBOSE"), (4, "DEBUG")]:
            configure_logging(level=level, force=True)
            assert get_level_name() == name
