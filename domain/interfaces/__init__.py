"""Domain interfaces."""
from .repository import (
    IAccountRepository,
    ILinkRepository,
    IUserRepository,
    LinkQueryOptions,
    TrackedLink,
)
from .rank_provider import IRankProvider

__all__ = [
    'IAccountRepository',
    'ILinkRepository',
    'IUserRepository',
    'LinkQueryOptions',
    'TrackedLink',
    'IRankProvider',
]
