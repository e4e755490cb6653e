"""
aaim.observability.logger — Structured JSON logging for the interpreter.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from aaim.utils.config import ObservabilityConfig


class JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "state"):
            entry["state"] = record.state
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(config: ObservabilityConfig, debug: bool = False):
    """Configure root logger with an optional JSON file handler and a console handler."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    if config.json_logs:
        log_dir = Path(config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        # File handler: structured JSON
        file_handler = logging.FileHandler(
            str(log_dir / config.log_file), encoding="utf-8"
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler.setLevel(logging.DEBUG)
        root.addHandler(file_handler)

    # Console handler: human readable
    console_handler = logging.StreamHandler()
    console_fmt = logging.Formatter(
        "%(asctime)s │ %(levelname)-7s │ %(name)-24s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    console_handler.setFormatter(console_fmt)
    console_handler.setLevel(
        logging.DEBUG if debug else logging.getLevelName(config.console_level.upper())
    )
    root.addHandler(console_handler)
