"""Logging for Chef's Eye.

One stdout handler per named logger, formatted either as colored text for
terminals or as one JSON object per line for log shippers.

Environment:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Scan workflow records carry `scan_epoch` / `scan_state` through `extra=`;
both formatters render them when present.
"""

import json
import logging
import os
import sys
from typing import Any, Optional


# Record attributes rendered as workflow context
CONTEXT_FIELDS = ("scan_epoch", "scan_state")


def _context(record: logging.LogRecord) -> dict[str, Any]:
    return {field: getattr(record, field) for field in CONTEXT_FIELDS if hasattr(record, field)}


class JSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, context, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        # emoji ingredient labels stay readable
        return json.dumps(payload, ensure_ascii=False)


class RichTextFormatter(logging.Formatter):
    """Colored single-line text with a level icon and optional scan context."""

    RESET = "\033[0m"

    # level -> (ANSI color, icon)
    LEVEL_STYLES = {
        "DEBUG": ("\033[36m", "🔍"),
        "INFO": ("\033[32m", "ℹ️"),
        "WARNING": ("\033[33m", "⚠️"),
        "ERROR": ("\033[31m", "❌"),
    }

    def format(self, record: logging.LogRecord) -> str:
        color, icon = self.LEVEL_STYLES.get(record.levelname, (self.RESET, ""))
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")

        context = _context(record)
        scan = ""
        if context:
            parts = [f"#{context['scan_epoch']}"] if "scan_epoch" in context else []
            if "scan_state" in context:
                parts.append(str(context["scan_state"]))
            scan = f" [scan {' '.join(parts)}]"

        line = f"{color}{icon} {timestamp} {record.levelname:<8} {record.name:<20}{scan} {record.getMessage()}{self.RESET}"
        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def _build_handler(level: int, log_type: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if log_type == "json" else RichTextFormatter())
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching a stdout handler on first use.

    Level and format come from LOG_LEVEL / LOG_TYPE; unknown levels fall back to INFO.
    """
    named = logging.getLogger(name)
    if named.handlers:
        return named

    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO
    named.setLevel(level)
    named.addHandler(_build_handler(level, os.getenv("LOG_TYPE", "text").lower()))
    return named


def set_log_level(level: str, target: Optional[logging.Logger] = None) -> None:
    """Change the level of a logger and its handlers at runtime (e.g. for --debug)."""
    target = target or logger
    numeric = getattr(logging, level.upper(), logging.INFO)
    target.setLevel(numeric)
    for handler in target.handlers:
        handler.setLevel(numeric)


logger = get_logger("chefs_eye")

# Gemini SDK and its HTTP client are chatty at DEBUG
logging.getLogger("google.genai").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
