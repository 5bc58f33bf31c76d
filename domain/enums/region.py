"""Region enumeration for League of Legends servers."""
from enum import Enum

from ..errors import UnsupportedRegion


_REGIONAL_ROUTES = {
    "NA1": "americas", "BR1": "americas", "LA1": "americas", "LA2": "americas",
    "EUW1": "europe", "EUN1": "europe", "TR1": "europe", "RU": "europe",
    "KR": "asia", "JP1": "asia",
    "OC1": "sea", "PH2": "sea", "SG2": "sea", "TH2": "sea", "TW2": "sea", "VN2": "sea",
}

# Regions actually wired to the provider. Extend by adding entries here,
# never by relaxing the checks that use it.
_SUPPORTED = frozenset({"NA1", "EUW1", "KR"})


class Region(Enum):
    """League of Legends platforms an account can be registered on.

    Provides:
    - platform_route: platform host for summoner/league APIs (e.g. euw1)
    - regional_route: routing host for account/match APIs (e.g. europe)
    - is_supported: whether reconciliation may call the provider for it
    """

    NA1 = "NA1"
    EUN1 = "EUN1"
    EUW1 = "EUW1"
    KR = "KR"
    BR1 = "BR1"
    LA1 = "LA1"
    LA2 = "LA2"
    OC1 = "OC1"
    TR1 = "TR1"
    RU = "RU"
    JP1 = "JP1"
    PH2 = "PH2"
    SG2 = "SG2"
    TH2 = "TH2"
    VN2 = "VN2"
    TW2 = "TW2"

    @property
    def platform_route(self) -> str:
        return self.value.lower()

    @property
    def regional_route(self) -> str:
        return _REGIONAL_ROUTES[self.value]

    @property
    def is_supported(self) -> bool:
        return self.value in _SUPPORTED

    def require_supported(self) -> 'Region':
        if not self.is_supported:
            raise UnsupportedRegion(f"Region {self.value} is not supported")
        return self

    @classmethod
    def supported_regions(cls) -> list['Region']:
        return [r for r in cls if r.is_supported]

    @classmethod
    def from_string(cls, value: str) -> 'Region':
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise UnsupportedRegion(f"Unknown region: {value!r}") from None
