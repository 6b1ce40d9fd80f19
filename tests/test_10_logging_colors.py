"""Tests for logging color output."""
from __future__ import annotations

import io
import logging
import os
from unittest.mock import patch


def _record(**attrs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="eigo-ms.test", level=logging.INFO, pathname="", lineno=0,
        msg="test message", args=(), exc_info=None,
    )
    defaults = {"tag": "INFO", "request_id": "-", "seconds": None, "event": None, "extra_data": None}
    defaults.update(attrs)
    for key, value in defaults.items():
        setattr(record, key, value)
    return record


class TestColorSupport:

    def test_custom_env_disables_colors(self):
        from eigo_ms.core.logging import supports_color

        with patch.dict(os.environ, {"EIGO_MS_NO_COLOR": "1"}):
            assert supports_color() is False

    def test_no_color_standard_env(self):
        from eigo_ms.core.logging import supports_color

        env = {k: v for k, v in os.environ.items() if k != "EIGO_MS_NO_COLOR"}
        env["NO_COLOR"] = "1"
        with patch.dict(os.environ, env, clear=True):
            assert supports_color() is False

    def test_non_tty_disables_colors(self):
        from eigo_ms.core.logging import supports_color

        with patch("sys.stdout", io.StringIO()):
            assert supports_color() is False


class TestColorize:

    def test_colorize_enabled(self):
        from eigo_ms.core.logging import Colors, colorize

        with patch("eigo_ms.core.logging.colors.USE_COLORS", True):
            result = colorize("test", Colors.RED)
        assert result == f"{Colors.RED}test{Colors.RESET}"

    def test_colorize_disabled(self):
        from eigo_ms.core.logging import Colors, colorize

        with patch("eigo_ms.core.logging.colors.USE_COLORS", False):
            assert colorize("test", Colors.RED) == "test"


class TestTagColors:

    def test_tag_colors(self):
        from eigo_ms.core.logging import Colors, get_tag_color

        assert get_tag_color("SUCCESS") == Colors.BRIGHT_GREEN
        assert get_tag_color("FAIL") == Colors.BRIGHT_RED
        assert get_tag_color("error") == Colors.BRIGHT_RED
        assert get_tag_color("WARN") == Colors.BRIGHT_YELLOW
        assert get_tag_color("INFO") == Colors.BRIGHT_CYAN
        assert get_tag_color("DEBUG") == Colors.GRAY
        assert get_tag_color("OTHER") == Colors.WHITE


class TestConsoleFormatter:

    def test_plain_output_without_colors(self):
        from eigo_ms.core.logging import ColoredConsoleFormatter

        with patch("eigo_ms.core.logging._USE_COLORS", False):
            line = ColoredConsoleFormatter().format(
                _record(request_id="rid1", seconds=0.25, extra_data={"category": "daily"})
            )
        assert "\033[" not in line
        assert "(rid1)" in line
        assert "test message" in line
        assert "0.250s" in line
        assert "category=daily" in line

    def test_no_request_id_placeholder(self):
        from eigo_ms.core.logging import ColoredConsoleFormatter

        with patch("eigo_ms.core.logging._USE_COLORS", False):
            line = ColoredConsoleFormatter().format(_record())
        assert "(-)" not in line

    def test_timing_colors(self):
        from eigo_ms.core.logging import Colors, ColoredConsoleFormatter

        formatter = ColoredConsoleFormatter()
        with patch("eigo_ms.core.logging._USE_COLORS", True):
            fast = formatter.format(_record(seconds=0.05))
            medium = formatter.format(_record(seconds=0.5))
            slow = formatter.format(_record(seconds=2.5))
        assert f"{Colors.GREEN}0.050s" in fast
        assert f"{Colors.YELLOW}0.500s" in medium
        assert f"{Colors.RED}2.500s" in slow

    def test_score_field_colors(self):
        from eigo_ms.core.logging import Colors, ColoredConsoleFormatter

        formatter = ColoredConsoleFormatter()
        with patch("eigo_ms.core.logging._USE_COLORS", True):
            network = formatter.format(_record(extra_data={"score": 23}))
            named = formatter.format(_record(extra_data={"score": 9}))
            plain = formatter.format(_record(extra_data={"score": 1}))
        assert f"{Colors.GREEN}score=23" in network
        assert f"{Colors.CYAN}score=9" in named
        assert f"{Colors.YELLOW}score=1" in plain

    def test_logger_output_has_ansi_when_enabled(self):
        from eigo_ms.core.logging import configure_logging, get_logger, success
        import eigo_ms.core.logging as log_module

        original = log_module._USE_COLORS
        captured = io.StringIO()
        try:
            with patch("sys.stdout", captured):
                configure_logging(level=2, force=True)
                # configure_logging re-detects colors; force them on afterwards
                log_module._USE_COLORS = True
                success(get_logger("eigo-ms.test"), "colored success")
        finally:
            log_module._USE_COLORS = original
            configure_logging(level=2, force=True)
        assert "\033[" in captured.getvalue()
