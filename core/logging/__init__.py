"""Structured logging: JSON file sink, console sink, bound context."""
from .config import bootstrap_logging, shutdown_logging
from .context import context, get_context
from .logger import StructuredLogger, get_logger

__all__ = [
    "bootstrap_logging",
    "shutdown_logging",
    "context",
    "get_context",
    "StructuredLogger",
    "get_logger",
]
