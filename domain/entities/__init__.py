"""Domain entities."""
from .account import Account, NO_GAMES_YET
from .user_account_link import UserAccountLink, IMMUNE, MAX_DECAY_DAYS
from .user import User
from .snapshot import Identity, Profile, RankSnapshot, AccountSnapshot, UNRANKED
from .events import EventKind, ReconcileEvent

__all__ = [
    'Account',
    'NO_GAMES_YET',
    'UserAccountLink',
    'IMMUNE',
    'MAX_DECAY_DAYS',
    'User',
    'Identity',
    'Profile',
    'RankSnapshot',
    'AccountSnapshot',
    'UNRANKED',
    'EventKind',
    'ReconcileEvent',
]
