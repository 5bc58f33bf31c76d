"""Registered user."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .account import utcnow


@dataclass
class User:
    auth_id: str
    email: str
    name: str
    created_at: datetime = field(default_factory=utcnow)
    id: Optional[int] = None
