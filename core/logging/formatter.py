from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict

from .context import get_context

_LEVEL_COLORS = {
    "TRACE": "\033[90m",
    "DEBUG": "\033[37m",
    "INFO": "\033[36m",
    "SUCCESS": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_STANDARD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "service"}


def _record_metadata(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S", time.localtime(record.created)),
        "level": record.levelname,
        "service": getattr(record, "service", None),
        "logger": record.name,
        "function": record.funcName,
        "line_number": record.lineno,
    }


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS and not k.startswith("_")}


class ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        md = _record_metadata(record)
        lvl = record.levelname
        parts = [
            md["timestamp"],
            f"{lvl:<8}",
            md["service"] or "-",
            f"{md['logger']}:{md['line_number']}",
            record.getMessage(),
        ]
        fields = {**get_context(), **_extra_fields(record)}
        if fields:
            parts.append(" ".join(f"{k}={v}" for k, v in fields.items()))
        if record.exc_info:
            parts.append(self.formatException(record.exc_info))
        return f"{_LEVEL_COLORS.get(lvl, '')}{' | '.join(parts)}{_RESET}"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = _record_metadata(record)
        payload["message"] = record.getMessage()
        ctx = get_context()
        if ctx:
            payload["context"] = ctx
        fields = _extra_fields(record)
        if fields:
            payload["fields"] = fields
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))
