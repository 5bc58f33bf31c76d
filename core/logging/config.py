from __future__ import annotations

import logging
import os
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import Optional

from .formatter import ConsoleFormatter, JSONFormatter
from .levels import register_levels, to_level

_listener: QueueListener | None = None


class _ServiceFilter(logging.Filter):
    """Stamp records that did not name a service with the process-wide one."""

    def __init__(self, service: str) -> None:
        super().__init__()
        self.service = service

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "service", None) is None:
            record.service = self.service
        return True


def bootstrap_logging(
    *,
    service: str = "decay-tracker",
    level: str | int | None = None,
    log_dir: Optional[Path] = None,
    log_file_name: str = "decay.jsonl",
    max_bytes: int = 5_000_000,
    backup_count: int = 5,
) -> None:
    """Configure the root logger once per process.

    Records go to a rotating JSON-lines file (through a queue listener so the
    event loop never blocks on disk) and, when ``LOG_CONSOLE=true``, to stderr.
    """
    global _listener
    shutdown_logging()
    register_levels()
    root = logging.getLogger()
    root.handlers.clear()
    root.filters.clear()
    lvl = to_level(level or os.getenv("LOG_LEVEL", "INFO"))
    root.setLevel(lvl)
    service_filter = _ServiceFilter(service)

    if os.getenv("LOG_CONSOLE", "false").strip().lower() == "true":
        console = logging.StreamHandler()
        console_level = os.getenv("LOG_CONSOLE_LEVEL", "")
        console.setLevel(to_level(console_level) if console_level else lvl)
        console.setFormatter(ConsoleFormatter())
        console.addFilter(service_filter)
        root.addHandler(console)

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        json_handler = RotatingFileHandler(
            str(log_dir / log_file_name), maxBytes=max_bytes, backupCount=backup_count
        )
        json_handler.setLevel(lvl)
        json_handler.setFormatter(JSONFormatter())
        q: Queue[logging.LogRecord] = Queue(-1)
        qh = QueueHandler(q)
        qh.addFilter(service_filter)
        root.addHandler(qh)
        _listener = QueueListener(q, json_handler, respect_handler_level=True)
        _listener.start()

    if not root.handlers:
        root.addHandler(logging.NullHandler())


def shutdown_logging() -> None:
    global _listener
    if _listener:
        _listener.stop()
        _listener = None
