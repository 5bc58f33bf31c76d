"""Domain layer - entities, enums, interfaces and errors."""
from .entities import (
    Account,
    UserAccountLink,
    User,
    AccountSnapshot,
    Profile,
    RankSnapshot,
    ReconcileEvent,
    EventKind,
)
from .enums import Region, QueueType, Tier
from .interfaces import (
    IAccountRepository,
    ILinkRepository,
    IUserRepository,
    IRankProvider,
    LinkQueryOptions,
    TrackedLink,
)

__all__ = [
    # Entities
    'Account',
    'UserAccountLink',
    'User',
    'AccountSnapshot',
    'Profile',
    'RankSnapshot',
    'ReconcileEvent',
    'EventKind',
    # Enums
    'Region',
    'QueueType',
    'Tier',
    # Interfaces
    'IAccountRepository',
    'ILinkRepository',
    'IUserRepository',
    'IRankProvider',
    'LinkQueryOptions',
    'TrackedLink',
]
