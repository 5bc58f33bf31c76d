from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import Any, Dict, Iterator

# Run id, batch, region, account and link id of the work in progress; the
# JSON formatter copies them onto every record emitted from the same task.
_fields: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("log_fields", default={})


def get_context() -> Dict[str, Any]:
    return dict(_fields.get())


@contextmanager
def context(**values: Any) -> Iterator[Dict[str, Any]]:
    """Bind non-None ``values`` for the ``with`` block; inner blocks extend outer ones."""
    merged = {**_fields.get(), **{k: v for k, v in values.items() if v is not None}}
    token = _fields.set(merged)
    try:
        yield merged
    finally:
        _fields.reset(token)
