"""Reconciliation outcome records. Returned to callers, never persisted."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..enums import Tier


class EventKind(Enum):
    NO_OP = "no_op"
    ACCRUED = "accrued"              # new games banked decay days
    TIER_CHANGED = "tier_changed"    # a tier-transition rule rewrote the bank
    RESET = "reset"                  # immunity broken, or Master+ LP reset
    DECREMENTED = "decremented"      # daily countdown took one day
    DECAY_STARTED = "decay_started"  # countdown reached zero


@dataclass(frozen=True)
class ReconcileEvent:
    kind: EventKind
    riot_id: str
    previous_decay_days: int
    current_decay_days: int
    games_played: int = 0
    previous_tier: Optional[Tier] = None
    current_tier: Optional[Tier] = None
    is_decaying: bool = False
    is_special: bool = False
    latest_game_id: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.kind is not EventKind.NO_OP

    def to_dict(self) -> dict:
        return {
            'kind': self.kind.value,
            'riot_id': self.riot_id,
            'previous_decay_days': self.previous_decay_days,
            'current_decay_days': self.current_decay_days,
            'games_played': self.games_played,
            'previous_tier': self.previous_tier.value if self.previous_tier else None,
            'current_tier': self.current_tier.value if self.current_tier else None,
            'is_decaying': self.is_decaying,
            'is_special': self.is_special,
            'latest_game_id': self.latest_game_id,
            'notes': list(self.notes),
        }
