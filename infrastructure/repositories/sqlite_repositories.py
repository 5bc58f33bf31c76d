"""SQLite implementations of the account, link and user repositories."""
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from domain.entities import Account, UserAccountLink, User
from domain.enums import Region, Tier
from domain.errors import DuplicateLinkError, PersistenceError
from domain.entities.account import utcnow
from domain.interfaces import (
    IAccountRepository,
    ILinkRepository,
    IUserRepository,
    LinkQueryOptions,
    TrackedLink,
)
from infrastructure.persistence import Database

_ACCOUNT_COLUMNS = (
    "puuid, game_name, tag_line, region, profile_icon_id, summoner_level, tier, "
    "division, league_points, last_solo_duo_game_id, is_active, last_updated"
)


@contextmanager
def _sqlite_errors(action: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        raise PersistenceError(f"SQLite error while {action}: {e}") from e


def _account_from_row(row: sqlite3.Row, prefix: str = "") -> Account:
    return Account(
        id=row[f"{prefix}id"],
        puuid=row[f"{prefix}puuid"],
        game_name=row[f"{prefix}game_name"],
        tag_line=row[f"{prefix}tag_line"],
        region=Region(row[f"{prefix}region"]),
        profile_icon_id=row[f"{prefix}profile_icon_id"],
        summoner_level=row[f"{prefix}summoner_level"],
        tier=Tier.parse(row[f"{prefix}tier"]),
        division=row[f"{prefix}division"],
        league_points=row[f"{prefix}league_points"],
        last_solo_duo_game_id=row[f"{prefix}last_solo_duo_game_id"],
        is_active=bool(row[f"{prefix}is_active"]),
        last_updated=datetime.fromisoformat(row[f"{prefix}last_updated"]),
    )


def _link_from_row(row: sqlite3.Row) -> UserAccountLink:
    return UserAccountLink(
        id=row["id"],
        user_id=row["user_id"],
        account_id=row["account_id"],
        remaining_decay_days=row["remaining_decay_days"],
        is_decaying=bool(row["is_decaying"]),
        is_special=bool(row["is_special"]),
        is_active=bool(row["is_active"]),
        last_updated=datetime.fromisoformat(row["last_updated"]),
    )


def _account_values(account: Account) -> tuple:
    return (
        account.puuid, account.game_name, account.tag_line, account.region.value,
        account.profile_icon_id, account.summoner_level,
        account.tier.value if account.tier else None, account.division,
        account.league_points, account.last_solo_duo_game_id,
        int(account.is_active), account.last_updated.isoformat(),
    )


class SqliteAccountRepository(IAccountRepository):

    def __init__(self, db: Database):
        self.db = db

    def get(self, account_id: int) -> Optional[Account]:
        with _sqlite_errors("loading account"):
            row = self.db.connection.execute("SELECT * FROM accounts WHERE id = ?", (account_id,)).fetchone()
        return _account_from_row(row) if row else None

    def get_by_puuid(self, puuid: str) -> Optional[Account]:
        with _sqlite_errors("loading account"):
            row = self.db.connection.execute("SELECT * FROM accounts WHERE puuid = ?", (puuid,)).fetchone()
        return _account_from_row(row) if row else None

    def _get_by_riot_id(self, region: Region, game_name: str, tag_line: str) -> Optional[Account]:
        row = self.db.connection.execute(
            "SELECT * FROM accounts WHERE region = ? AND game_name = ? AND tag_line = ?",
            (region.value, game_name, tag_line),
        ).fetchone()
        return _account_from_row(row) if row else None

    def find_or_create(self, account: Account) -> Account:
        with _sqlite_errors("upserting account"), self.db.transaction():
            existing = self.get_by_puuid(account.puuid) or self._get_by_riot_id(
                account.region, account.game_name, account.tag_line
            )
            if existing is None:
                return self.save(account)
            existing.game_name = account.game_name
            existing.tag_line = account.tag_line
            existing.profile_icon_id = account.profile_icon_id
            existing.summoner_level = account.summoner_level
            existing.tier = account.tier
            existing.division = account.division
            existing.league_points = account.league_points
            existing.is_active = True
            return self.save(existing)

    def save(self, account: Account) -> Account:
        account.last_updated = utcnow()
        with _sqlite_errors("saving account"):
            if account.id is None:
                cur = self.db.connection.execute(
                    f"INSERT INTO accounts ({_ACCOUNT_COLUMNS}) VALUES (?,?,?,?,?,?,?,?,?,?,?,?)",
                    _account_values(account),
                )
                account.id = cur.lastrowid
            else:
                self.db.connection.execute(
                    """UPDATE accounts SET puuid=?, game_name=?, tag_line=?, region=?,
                       profile_icon_id=?, summoner_level=?, tier=?, division=?,
                       league_points=?, last_solo_duo_game_id=?, is_active=?, last_updated=?
                       WHERE id=?""",
                    _account_values(account) + (account.id,),
                )
        return account

    def delete(self, account_id: int) -> None:
        with _sqlite_errors("deleting account"):
            self.db.connection.execute("DELETE FROM accounts WHERE id = ?", (account_id,))


class SqliteLinkRepository(ILinkRepository):

    def __init__(self, db: Database):
        self.db = db

    def create(self, link: UserAccountLink) -> UserAccountLink:
        link.last_updated = utcnow()
        try:
            cur = self.db.connection.execute(
                """INSERT INTO user_accounts (user_id, account_id, remaining_decay_days,
                   is_decaying, is_special, is_active, last_updated) VALUES (?,?,?,?,?,?,?)""",
                (link.user_id, link.account_id, link.remaining_decay_days, int(link.is_decaying),
                 int(link.is_special), int(link.is_active), link.last_updated.isoformat()),
            )
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateLinkError(
                    f"user {link.user_id} already tracks account {link.account_id}"
                ) from e
            raise PersistenceError(f"SQLite error while creating link: {e}") from e
        except sqlite3.Error as e:
            raise PersistenceError(f"SQLite error while creating link: {e}") from e
        link.id = cur.lastrowid
        return link

    def get(self, link_id: int) -> Optional[UserAccountLink]:
        with _sqlite_errors("loading link"):
            row = self.db.connection.execute("SELECT * FROM user_accounts WHERE id = ?", (link_id,)).fetchone()
        return _link_from_row(row) if row else None

    def get_for_user_and_account(self, user_id: int, account_id: int) -> Optional[UserAccountLink]:
        with _sqlite_errors("loading link"):
            row = self.db.connection.execute(
                "SELECT * FROM user_accounts WHERE user_id = ? AND account_id = ?", (user_id, account_id)
            ).fetchone()
        return _link_from_row(row) if row else None

    def _query_tracked(self, options: LinkQueryOptions, user_id: Optional[int] = None) -> List[TrackedLink]:
        account_cols = ", ".join(f"a.{c.strip()} AS a_{c.strip()}" for c in ("id, " + _ACCOUNT_COLUMNS).split(","))
        sql = f"SELECT l.*, {account_cols} FROM user_accounts l JOIN accounts a ON a.id = l.account_id"
        clauses: List[str] = []
        params: list = []
        if not options.include_inactive:
            clauses.append("l.is_active = 1 AND a.is_active = 1")
        if user_id is not None:
            clauses.append("l.user_id = ?")
            params.append(user_id)
        if options.region is not None:
            clauses.append("a.region = ?")
            params.append(options.region.value)
        if options.tiers is not None:
            tiers = sorted(t.value for t in options.tiers)
            if not tiers:
                return []
            clauses.append(f"a.tier IN ({','.join('?' * len(tiers))})")
            params.extend(tiers)
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY l.last_updated DESC, l.id"
        with _sqlite_errors("listing links"):
            rows = self.db.connection.execute(sql, params).fetchall()
        return [TrackedLink(link=_link_from_row(r), account=_account_from_row(r, prefix="a_")) for r in rows]

    def list_for_user(self, user_id: int, options: LinkQueryOptions = LinkQueryOptions()) -> List[TrackedLink]:
        return self._query_tracked(options, user_id=user_id)

    def list_tracked(self, options: LinkQueryOptions = LinkQueryOptions()) -> List[TrackedLink]:
        return self._query_tracked(options)

    def save(self, link: UserAccountLink) -> UserAccountLink:
        if link.id is None:
            return self.create(link)
        link.last_updated = utcnow()
        with _sqlite_errors("saving link"):
            self.db.connection.execute(
                """UPDATE user_accounts SET remaining_decay_days=?, is_decaying=?, is_special=?,
                   is_active=?, last_updated=? WHERE id=?""",
                (link.remaining_decay_days, int(link.is_decaying), int(link.is_special),
                 int(link.is_active), link.last_updated.isoformat(), link.id),
            )
        return link

    def delete(self, link_id: int) -> None:
        with _sqlite_errors("deleting link"):
            self.db.connection.execute("DELETE FROM user_accounts WHERE id = ?", (link_id,))

    def delete_for_user(self, user_id: int) -> int:
        with _sqlite_errors("deleting links"):
            cur = self.db.connection.execute("DELETE FROM user_accounts WHERE user_id = ?", (user_id,))
        return cur.rowcount


class SqliteUserRepository(IUserRepository):

    def __init__(self, db: Database):
        self.db = db

    def create(self, user: User) -> User:
        with _sqlite_errors("creating user"):
            cur = self.db.connection.execute(
                "INSERT INTO users (auth_id, email, name, created_at) VALUES (?,?,?,?)",
                (user.auth_id, user.email.strip().lower(), user.name.strip(), user.created_at.isoformat()),
            )
        user.id = cur.lastrowid
        return user

    def _one(self, sql: str, param) -> Optional[User]:
        with _sqlite_errors("loading user"):
            row = self.db.connection.execute(sql, (param,)).fetchone()
        if not row:
            return None
        return User(
            id=row["id"],
            auth_id=row["auth_id"],
            email=row["email"],
            name=row["name"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def get(self, user_id: int) -> Optional[User]:
        return self._one("SELECT * FROM users WHERE id = ?", user_id)

    def get_by_auth_id(self, auth_id: str) -> Optional[User]:
        return self._one("SELECT * FROM users WHERE auth_id = ?", auth_id)

    def delete(self, user_id: int) -> None:
        # links go with the user through ON DELETE CASCADE
        with _sqlite_errors("deleting user"), self.db.transaction():
            self.db.connection.execute("DELETE FROM users WHERE id = ?", (user_id,))
