"""Tracked-account management from the terminal."""
from __future__ import annotations

import json
import os
from typing import List, Optional, Tuple

from core.logging.logger import get_logger
from application.services import UserStats
from domain.enums import Region
from domain.errors import DecayTrackerError
from domain.interfaces import LinkQueryOptions, TrackedLink
from .runtime import Runtime, open_runtime

DEFAULT_USER = "local"


def parse_riot_id(value: str) -> Tuple[str, str]:
    """Split ``GameName#TAG``."""
    game_name, sep, tag_line = value.strip().rpartition("#")
    if not sep or not game_name or not tag_line:
        raise ValueError(f"riot id must look like GameName#TAG, got {value!r}")
    return game_name.strip(), tag_line.strip()


def format_tracked(tracked: TrackedLink) -> str:
    link, account = tracked.link, tracked.account
    days = "immune" if link.is_immune else f"{link.remaining_decay_days:>2} days"
    flags = []
    if link.is_decaying:
        flags.append("decaying")
    if link.is_special:
        flags.append("special")
    if not link.is_active:
        flags.append("inactive")
    return (
        f"[{link.id:>3}] {account.riot_id:<28} {account.region.value:<5} "
        f"{account.rank_display:<24} {days:<9} {link.decay_status:<8} {' '.join(flags)}"
    ).rstrip()


class AccountsCommand:
    """Add, list, correct and remove tracked accounts for one local user."""

    def __init__(self, auth_id: Optional[str] = None) -> None:
        self.auth_id = auth_id or os.getenv("DECAY_USER", DEFAULT_USER)
        self._log = get_logger(__name__, service="accounts-cli")

    def _user_id(self, rt: Runtime) -> int:
        user = rt.registration.ensure_user(self.auth_id, f"{self.auth_id}@localhost", self.auth_id)
        return user.id

    async def add(self, game_name: str, tag_line: str, region: Region, days: int = 28) -> TrackedLink:
        async with open_runtime() as rt:
            tracked = await rt.registration.register(self._user_id(rt), game_name, tag_line, region, days)
        print(f"Tracking {format_tracked(tracked)}")
        return tracked

    async def list(self, include_inactive: bool = False, as_json: bool = False) -> List[TrackedLink]:
        async with open_runtime() as rt:
            rows = rt.registration.list_accounts(
                self._user_id(rt), LinkQueryOptions(include_inactive=include_inactive)
            )
        if as_json:
            print(json.dumps([{**t.account.to_dict(), "link": t.link.to_dict()} for t in rows], indent=2))
            return rows
        if not rows:
            print("No tracked accounts.")
        for tracked in rows:
            print(format_tracked(tracked))
        return rows

    async def stats(self, as_json: bool = False) -> UserStats:
        async with open_runtime() as rt:
            stats = rt.registration.stats(self._user_id(rt))
        if as_json:
            print(json.dumps(stats.to_dict(), indent=2))
            return stats
        print(f"Accounts: {stats.total_accounts} ({stats.active_accounts} active, {stats.immune} immune)")
        print(f"Critical (<= 3 days): {stats.critical}")
        print(f"Warning (4-7 days):   {stats.warning}")
        print(f"Safe (> 7 days):      {stats.safe}")
        print(f"Regions: {', '.join(stats.regions) or '-'}")
        print(f"Average decay days: {stats.average_decay_days}")
        return stats

    async def update(self, link_id: int, **changes) -> None:
        async with open_runtime() as rt:
            link = rt.registration.update_settings(link_id, **changes)
        print(f"Link {link.id}: {link.remaining_decay_days} days, {link.decay_status}")

    async def remove(self, link_id: int) -> None:
        async with open_runtime() as rt:
            rt.registration.remove(self._user_id(rt), link_id)
        print(f"Stopped tracking link {link_id}.")

    async def run_interactive(self) -> None:
        while True:
            print(f"\n=== Accounts ({self.auth_id}) ===")
            print("1) List tracked accounts")
            print("2) Add account")
            print("3) Set remaining decay days")
            print("4) Pause / resume tracking")
            print("5) Remove account")
            print("6) Statistics")
            print("7) Back")
            choice = input("Choose: ").strip()
            try:
                if choice == "1":
                    await self.list(include_inactive=True)
                elif choice == "2":
                    game_name, tag_line = parse_riot_id(input("Riot id (GameName#TAG): "))
                    codes = ", ".join(r.value for r in Region.supported_regions())
                    region = Region.from_string(input(f"Region ({codes}): "))
                    raw_days = input("Remaining decay days [28]: ").strip()
                    await self.add(game_name, tag_line, region, int(raw_days) if raw_days else 28)
                elif choice == "3":
                    link_id = int(input("Link id: ").strip())
                    await self.update(link_id, remaining_decay_days=int(input("Days (-1 = immune): ").strip()))
                elif choice == "4":
                    link_id = int(input("Link id: ").strip())
                    active = input("Active? [y/n]: ").strip().lower().startswith("y")
                    await self.update(link_id, is_active=active)
                elif choice == "5":
                    await self.remove(int(input("Link id: ").strip()))
                elif choice == "6":
                    await self.stats()
                elif choice == "7":
                    return
                else:
                    print("Invalid option.", flush=True)
            except (DecayTrackerError, ValueError) as e:
                self._log.warning(lambda: f"accounts-menu-failed {e}")
                print(f"Error: {e}", flush=True)
