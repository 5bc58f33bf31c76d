"""SQLite storage for users, accounts and per-user decay links."""
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from core.logging import get_logger
from domain.errors import PersistenceError

logger = get_logger(__name__, service="db")

_SCHEMA = (
    """CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        auth_id TEXT NOT NULL UNIQUE,
        email TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        created_at TEXT NOT NULL)""",
    """CREATE TABLE IF NOT EXISTS accounts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        puuid TEXT NOT NULL UNIQUE,
        game_name TEXT NOT NULL,
        tag_line TEXT NOT NULL,
        region TEXT NOT NULL,
        profile_icon_id INTEGER NOT NULL DEFAULT 0,
        summoner_level INTEGER NOT NULL DEFAULT 1,
        tier TEXT,
        division TEXT,
        league_points INTEGER NOT NULL DEFAULT 0 CHECK (league_points >= 0),
        last_solo_duo_game_id TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        last_updated TEXT NOT NULL,
        UNIQUE (region, game_name, tag_line))""",
    """CREATE TABLE IF NOT EXISTS user_accounts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        account_id INTEGER NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
        remaining_decay_days INTEGER NOT NULL DEFAULT 28
            CHECK (remaining_decay_days BETWEEN -1 AND 28),
        is_decaying INTEGER NOT NULL DEFAULT 0,
        is_special INTEGER NOT NULL DEFAULT 0,
        is_active INTEGER NOT NULL DEFAULT 1,
        last_updated TEXT NOT NULL,
        UNIQUE (user_id, account_id),
        CHECK (NOT (remaining_decay_days = -1 AND is_decaying = 1)))""",
    "CREATE INDEX IF NOT EXISTS idx_accounts_tier ON accounts(tier)",
    "CREATE INDEX IF NOT EXISTS idx_accounts_region ON accounts(region)",
    "CREATE INDEX IF NOT EXISTS idx_user_accounts_user ON user_accounts(user_id, is_active)",
)


class Database:
    """Owns the sqlite connection and the schema.

    Repositories share one ``Database``; ``transaction()`` groups their writes
    so an Account and its UserAccountLink are committed together or not at all.
    """

    def __init__(self, db_path: Union[Path, str]):
        self.db_path = db_path
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(str(db_path), isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys=ON")
            if str(db_path) != ":memory:":
                self._conn.execute("PRAGMA journal_mode=WAL")
                self._conn.execute("PRAGMA synchronous=NORMAL")
            self._create_tables()
        except sqlite3.Error as e:
            logger.error(lambda: f"db-open-failed {db_path} {e}")
            raise PersistenceError(f"SQLite error while opening {db_path}: {e}") from e
        self._depth = 0
        logger.debug(lambda: f"db-open {db_path}")

    def _create_tables(self) -> None:
        for statement in _SCHEMA:
            self._conn.execute(statement)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """BEGIN/COMMIT around the block, ROLLBACK on error. Nested blocks join the outer one."""
        if self._depth:
            self._depth += 1
            try:
                yield self._conn
            finally:
                self._depth -= 1
            return

        self._conn.execute("BEGIN")
        self._depth = 1
        try:
            yield self._conn
        except BaseException:
            self._conn.execute("ROLLBACK")
            raise
        else:
            self._conn.execute("COMMIT")
        finally:
            self._depth = 0

    def close(self) -> None:
        self._conn.close()
