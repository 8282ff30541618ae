# registry/logging_config.py
"""
Logging setup for processes embedding the registry.

Library modules only log to `registry.*` loggers and attach ledger context
(`ledger`, `record_id`, `caller`, `event`) through `extra=`. configure_logging()
installs handlers on the `registry` logger that render that context, either
as JSON lines or as a trailing `key=value` suffix.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

CONTEXT_FIELDS = ("ledger", "event", "record_id", "caller")


def ledger_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Ledger context attached to a log record, in a fixed key order."""
    return {name: getattr(record, name) for name in CONTEXT_FIELDS if getattr(record, name, None) is not None}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, then ledger context."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(ledger_context(record))
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, separators=(",", ":"))


class ContextFormatter(logging.Formatter):
    """Human-readable line with the ledger context appended as key=value pairs."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = ledger_context(record)
        if context:
            line += " [" + " ".join(f"{k}={v}" for k, v in context.items()) + "]"
        return line


def configure_logging(
    level: Optional[str] = None,
    json_format: bool = False,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Route `registry.*` logs to stdout (and optionally a file).

    level defaults to $REGISTRY_LOG_LEVEL, then INFO. The registry logger stops
    propagating so host handlers on the root logger don't print lines twice.
    """
    level = level or os.environ.get("REGISTRY_LOG_LEVEL", "INFO")
    logger = logging.getLogger("registry")
    logger.setLevel(level.upper())
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = StructuredFormatter() if json_format else ContextFormatter()
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
