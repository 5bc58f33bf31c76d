"""Ranked tier enumeration."""
from enum import Enum
from typing import Optional


class Tier(Enum):
    """League of Legends ranked tiers, lowest first."""

    IRON = "IRON"
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"
    EMERALD = "EMERALD"
    DIAMOND = "DIAMOND"
    MASTER = "MASTER"
    GRANDMASTER = "GRANDMASTER"
    CHALLENGER = "CHALLENGER"

    @property
    def is_apex(self) -> bool:
        """Master and above (no divisions)."""
        return self in (Tier.MASTER, Tier.GRANDMASTER, Tier.CHALLENGER)

    @property
    def is_decay_tracked(self) -> bool:
        """Only Diamond and above lose LP to inactivity."""
        return self is Tier.DIAMOND or self.is_apex

    @property
    def decay_ceiling(self) -> Optional[int]:
        """Maximum number of banked decay days for this tier."""
        if self is Tier.DIAMOND:
            return 28
        if self.is_apex:
            return 14
        return None

    @property
    def days_per_game(self) -> int:
        """Decay days banked by one ranked solo/duo game."""
        if self is Tier.DIAMOND:
            return 7
        if self.is_apex:
            return 1
        return 0

    @classmethod
    def decay_tracked(cls) -> list['Tier']:
        return [t for t in cls if t.is_decay_tracked]

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional['Tier']:
        """Upstream tier string to Tier; None/empty means unranked."""
        if not value:
            return None
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown tier: {value!r}") from None
