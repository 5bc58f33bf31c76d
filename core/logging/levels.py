from __future__ import annotations

import logging
from enum import IntEnum


class LogLevel(IntEnum):
    TRACE = 5
    DEBUG = 10
    INFO = 20
    SUCCESS = 25
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


_CUSTOM = {LogLevel.TRACE: "TRACE", LogLevel.SUCCESS: "SUCCESS"}


def register_levels() -> None:
    for level, name in _CUSTOM.items():
        if logging.getLevelName(int(level)) != name:
            logging.addLevelName(int(level), name)


def to_level(value: int | str) -> int:
    """Map a level name (including TRACE/SUCCESS) or number to an int level."""
    if isinstance(value, int):
        return value
    name = value.strip().upper()
    if name in LogLevel.__members__:
        return int(LogLevel[name])
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO
