"""Infrastructure layer - API clients, storage and repositories."""
from .api import RiotAPIClient, RateLimiter, RateLimitedGateway
from .persistence import Database
from .repositories import (
    RiotAccountFetcher,
    SqliteAccountRepository,
    SqliteLinkRepository,
    SqliteUserRepository,
)

__all__ = [
    'RiotAPIClient',
    'RateLimiter',
    'RateLimitedGateway',
    'Database',
    'RiotAccountFetcher',
    'SqliteAccountRepository',
    'SqliteLinkRepository',
    'SqliteUserRepository',
]
