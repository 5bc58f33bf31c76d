"""Per-user decay state for one tracked account."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..enums import Tier
from ..errors import InvariantViolation
from .account import utcnow

IMMUNE = -1
MAX_DECAY_DAYS = 28


@dataclass
class UserAccountLink:
    """A user's view of an Account.

    ``remaining_decay_days`` lives in [-1, 28]; -1 means immune (no decay is
    ever applied) and 0 means the bank is empty.
    """

    user_id: int
    account_id: int
    remaining_decay_days: int = MAX_DECAY_DAYS
    is_decaying: bool = False
    is_special: bool = False
    is_active: bool = True
    last_updated: datetime = field(default_factory=utcnow)
    id: Optional[int] = None

    @property
    def is_immune(self) -> bool:
        return self.remaining_decay_days == IMMUNE

    @property
    def decay_status(self) -> str:
        if self.is_immune:
            return 'IMMUNE'
        if self.remaining_decay_days <= 0:
            return 'EXPIRED'
        if self.remaining_decay_days <= 3:
            return 'CRITICAL'
        if self.remaining_decay_days <= 7:
            return 'WARNING'
        return 'SAFE'

    def check_invariants(self, tier: Optional[Tier] = None) -> None:
        days = self.remaining_decay_days
        if days < IMMUNE or days > MAX_DECAY_DAYS:
            raise InvariantViolation(f"remaining_decay_days {days} outside [-1, {MAX_DECAY_DAYS}]")
        if self.is_immune and self.is_decaying:
            raise InvariantViolation("an immune account cannot be decaying")
        if tier is not None and tier.decay_ceiling is not None and days > tier.decay_ceiling:
            raise InvariantViolation(f"{days} decay days exceeds the {tier.value} ceiling of {tier.decay_ceiling}")

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'account_id': self.account_id,
            'remaining_decay_days': self.remaining_decay_days,
            'is_decaying': self.is_decaying,
            'is_special': self.is_special,
            'is_active': self.is_active,
            'decay_status': self.decay_status,
            'last_updated': self.last_updated.isoformat(),
        }
