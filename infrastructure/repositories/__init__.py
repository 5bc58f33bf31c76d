"""Infrastructure repositories module."""
from .riot_account_fetcher import RiotAccountFetcher
from .sqlite_repositories import (
    SqliteAccountRepository,
    SqliteLinkRepository,
    SqliteUserRepository,
)

__all__ = [
    'RiotAccountFetcher',
    'SqliteAccountRepository',
    'SqliteLinkRepository',
    'SqliteUserRepository',
]
