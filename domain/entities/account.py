"""Account entity: a League account shared by every user tracking it."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..enums import Region, Tier

# Stored before the first ranked solo/duo game has been seen. Never matches an
# upstream id, so the first pass with history credits every listed game.
NO_GAMES_YET = "NO_GAMES_YET"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Account:
    """Identity fields are immutable; the rest mirrors the provider."""

    # Identity
    puuid: str
    game_name: str
    tag_line: str
    region: Region

    # Provider mirror
    profile_icon_id: int = 0
    summoner_level: int = 1
    tier: Optional[Tier] = None
    division: Optional[str] = None
    league_points: int = 0
    last_solo_duo_game_id: str = NO_GAMES_YET

    is_active: bool = True
    last_updated: datetime = field(default_factory=utcnow)
    id: Optional[int] = None

    @property
    def riot_id(self) -> str:
        return f"{self.game_name}#{self.tag_line}"

    @property
    def rank_display(self) -> str:
        if self.tier is None:
            return "Unranked"
        if self.tier.is_apex:
            return f"{self.tier.value} {self.league_points}LP"
        return f"{self.tier.value} {self.division} {self.league_points}LP"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'puuid': self.puuid,
            'riot_id': self.riot_id,
            'region': self.region.value,
            'profile_icon_id': self.profile_icon_id,
            'summoner_level': self.summoner_level,
            'tier': self.tier.value if self.tier else None,
            'division': self.division,
            'league_points': self.league_points,
            'last_solo_duo_game_id': self.last_solo_duo_game_id,
            'rank_display': self.rank_display,
            'is_active': self.is_active,
            'last_updated': self.last_updated.isoformat(),
        }
