"""
Log Formatters for JSON and Console Output.

    JsonlFormatter: one JSON object per line, for files and log aggregators
        {"ts":"2024-01-15T14:30:05+00:00","level":2,"tag":"SUCCESS","message":"done",
         "request_id":"abc123","seconds":0.84,"extra":{"key":"audio-...mp3"}}

    ColoredConsoleFormatter: human-readable terminal output
        14:30:05 [SUCCESS] (abc123) done 0.840s key=audio-...mp3 bytes=18432

Console coloring:
    - Timing: < 0.5s green, < 2s yellow, slower red (provider round-trips)
    - status_code: 2xx green, 4xx yellow, 5xx red
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict

from . import colors
from .colors import Colors, get_tag_color


def _paint(text: str, color: str) -> str:
    # Read the flag at call time, configure_logging() may have changed it
    if not colors.USE_COLORS:
        return text
    return f"{color}{text}{Colors.RESET}"


class JsonlFormatter(logging.Formatter):
    """Format log records as JSON Lines for file output."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).astimezone().isoformat()

        payload: Dict[str, Any] = {
            "ts": ts,
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
    Format log records with ANSI colors for console output.

    Output Format:
        HH:MM:SS [  TAG  ] (rid) message event=stage 0.123s key=value
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tag = getattr(record, "tag", record.levelname)
        rid = getattr(record, "request_id", "-")

        parts = [_paint(ts, Colors.DIM), _paint(f"[{tag:^7}]", get_tag_color(tag))]
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
        if seconds < 0.5:
            return Colors.GREEN
        if seconds < 2.0:
            return Colors.YELLOW
        return Colors.RED

    @staticmethod
    def _field_color(key: str, value: Any) -> str:
        if key == "status_code" and isinstance(value, int):
            if value < 400:
                return Colors.GREEN
            if value < 500:
                return Colors.YELLOW
            return Colors.RED
        if key in ("error", "error_type"):
            return Colors.RED
        return Colors.DIM
