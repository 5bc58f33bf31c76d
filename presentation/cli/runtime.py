"""Object graph shared by the CLI commands and scripts."""
from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional, Union

from config import settings
from application.scheduling import ScheduleTrigger
from application.services import (
    AccountRegistrationService,
    BatchProcessor,
    ReconciliationService,
)
from application.services.batch_processor import ProgressCallback
from infrastructure import (
    Database,
    RiotAccountFetcher,
    RiotAPIClient,
    SqliteAccountRepository,
    SqliteLinkRepository,
    SqliteUserRepository,
)


@dataclass
class Runtime:
    db: Database
    api: RiotAPIClient
    fetcher: RiotAccountFetcher
    users: SqliteUserRepository
    accounts: SqliteAccountRepository
    links: SqliteLinkRepository
    reconciliation: ReconciliationService
    processor: BatchProcessor
    registration: AccountRegistrationService
    trigger: ScheduleTrigger


@asynccontextmanager
async def open_runtime(
    db_path: Optional[Union[Path, str]] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> AsyncIterator[Runtime]:
    """Open the database and the API client; close both on exit."""
    settings.validate()
    settings.create_directories()
    db = Database(db_path or settings.DB_PATH)
    try:
        async with RiotAPIClient(settings.RIOT_API_KEY) as api:
            fetcher = RiotAccountFetcher(api)
            users = SqliteUserRepository(db)
            accounts = SqliteAccountRepository(db)
            links = SqliteLinkRepository(db)
            reconciliation = ReconciliationService(fetcher, db, accounts, links)
            processor = BatchProcessor(reconciliation, links, progress_callback=progress_callback)
            yield Runtime(
                db=db,
                api=api,
                fetcher=fetcher,
                users=users,
                accounts=accounts,
                links=links,
                reconciliation=reconciliation,
                processor=processor,
                registration=AccountRegistrationService(fetcher, db, users, accounts, links),
                trigger=ScheduleTrigger(processor),
            )
    finally:
        db.close()
