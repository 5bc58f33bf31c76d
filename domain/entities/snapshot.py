"""Fresh provider data for one account, as consumed by reconciliation."""
from dataclasses import dataclass, field
from typing import List, Optional

from ..enums import Tier


@dataclass(frozen=True)
class Identity:
    puuid: str
    game_name: str
    tag_line: str


@dataclass(frozen=True)
class Profile:
    icon_id: int
    level: int


@dataclass(frozen=True)
class RankSnapshot:
    """Solo/duo ladder position. ``tier is None`` means unranked."""

    tier: Optional[Tier]
    division: Optional[str] = None
    league_points: int = 0

    @property
    def is_ranked(self) -> bool:
        return self.tier is not None

    def is_exactly(self, tier: Tier, division: str, league_points: int) -> bool:
        return self.tier is tier and self.division == division and self.league_points == league_points


UNRANKED = RankSnapshot(tier=None)


@dataclass(frozen=True)
class AccountSnapshot:
    profile: Profile
    rank: RankSnapshot
    # Ranked solo/duo match ids, most recent first.
    match_ids: List[str] = field(default_factory=list)
