"""
Log formatters.

JsonlFormatter writes one JSON object per line for the rotating log file:
    {"ts":"2026-03-02T09:12:44+09:00","level":2,"tag":"INFO","message":"lesson_generated","request_id":"3f9a1c2b0d4e","seconds":2.41,"extra":{"category":"business"}}

ColoredConsoleFormatter writes the terminal view:
    09:12:44 [ INFO  ] (3f9a1c2b0d4e) lesson_generated category=business 2.410s

Durations are colored green under 0.1s, yellow under 1s, red above.
Generation calls routinely take seconds, so "red" there is normal.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict

from .colors import Colors, get_tag_color


def _get_use_colors() -> bool:
    # Read at format time so tests can flip the flag on the package.
    import eigo_ms.core.logging as log_module
    return getattr(log_module, "_USE_COLORS", False)


def _paint(text: str, color: str) -> str:
    if not _get_use_colors():
        return text
    return f"{color}{text}{Colors.RESET}"


class JsonlFormatter(logging.Formatter):
    """Format records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": getattr(record, "numeric_level", 2),
            "tag": getattr(record, "tag", record.levelname),
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }

        event = getattr(record, "event", None)
        if event:
            payload["event"] = event

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            payload["seconds"] = seconds

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload["extra"] = extra_data

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """
    Human-readable console lines.

    Format:
        HH:MM:SS [ TAG   ] (rid) message key=value 0.123s
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tag = getattr(record, "tag", record.levelname)
        rid = getattr(record, "request_id", "-")

        parts = [
            _paint(ts, Colors.DIM),
            _paint(f"[{tag:^7}]", get_tag_color(tag)),
        ]
        if rid != "-":
            parts.append(_paint(f"({rid})", Colors.DIM + Colors.CYAN))
        parts.append(record.getMessage())

        event = getattr(record, "event", None)
        if event:
            parts.append(_paint(f"event={event}", Colors.BLUE))

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            parts.append(_paint(f"{seconds:.3f}s", self._timing_color(seconds)))

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            for k, v in extra_data.items():
                parts.append(_paint(f"{k}={v}", self._field_color(k, v)))

        return " ".join(parts)

    @staticmethod
    def _timing_color(seconds: float) -> str:
        if seconds < 0.1:
            return Colors.GREEN
        if seconds < 1.0:
            return Colors.YELLOW
        return Colors.RED

    @staticmethod
    def _field_color(key: str, value: Any) -> str:
        """
        Field coloring.

        category and speaker labels are the things people scan for when
        following a playback, so they get their own colors. Voice scores
        use the quality tiers: network voices (>= 15) green, named
        high-quality voices (>= 5) cyan, everything else yellow.
        """
        if key in ("category", "mode"):
            return Colors.MAGENTA
        if key == "speaker":
            return Colors.BRIGHT_BLUE
        if key == "score" and isinstance(value, (int, float)):
            if value >= 15:
                return Colors.GREEN
            if value >= 5:
                return Colors.CYAN
            return Colors.YELLOW
        if key == "error":
            return Colors.RED
        return Colors.DIM
