"""Repository interfaces for persisted accounts, links and users."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..entities import Account, UserAccountLink, User
from ..enums import Region, Tier


@dataclass(frozen=True)
class LinkQueryOptions:
    """Recognised filters for link lookups."""

    include_inactive: bool = False
    tiers: Optional[frozenset[Tier]] = None
    region: Optional[Region] = None


@dataclass
class TrackedLink:
    """A link together with the account it points at."""

    link: UserAccountLink
    account: Account


class IAccountRepository(ABC):
    """Accounts keyed by puuid, unique per (region, game name, tag line)."""

    @abstractmethod
    def get(self, account_id: int) -> Optional[Account]:
        pass

    @abstractmethod
    def get_by_puuid(self, puuid: str) -> Optional[Account]:
        pass

    @abstractmethod
    def find_or_create(self, account: Account) -> Account:
        """Upsert by identity: refresh the mirror fields of an existing row or insert."""
        pass

    @abstractmethod
    def save(self, account: Account) -> Account:
        pass

    @abstractmethod
    def delete(self, account_id: int) -> None:
        pass


class ILinkRepository(ABC):
    """User/account links, unique per (user_id, account_id)."""

    @abstractmethod
    def create(self, link: UserAccountLink) -> UserAccountLink:
        pass

    @abstractmethod
    def get(self, link_id: int) -> Optional[UserAccountLink]:
        pass

    @abstractmethod
    def get_for_user_and_account(self, user_id: int, account_id: int) -> Optional[UserAccountLink]:
        pass

    @abstractmethod
    def list_for_user(self, user_id: int, options: LinkQueryOptions = LinkQueryOptions()) -> List[TrackedLink]:
        pass

    @abstractmethod
    def list_tracked(self, options: LinkQueryOptions = LinkQueryOptions()) -> List[TrackedLink]:
        """Links joined with their accounts, filtered by tier/region/activity."""
        pass

    @abstractmethod
    def save(self, link: UserAccountLink) -> UserAccountLink:
        pass

    @abstractmethod
    def delete(self, link_id: int) -> None:
        pass

    @abstractmethod
    def delete_for_user(self, user_id: int) -> int:
        pass


class IUserRepository(ABC):

    @abstractmethod
    def create(self, user: User) -> User:
        pass

    @abstractmethod
    def get(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    def get_by_auth_id(self, auth_id: str) -> Optional[User]:
        pass

    @abstractmethod
    def delete(self, user_id: int) -> None:
        """Delete the user and every link they own."""
        pass
