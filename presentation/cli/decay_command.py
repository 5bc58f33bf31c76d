"""Decay batches from the terminal: interactive menu and argparse entry point.

    python -m presentation.cli.decay_command decay --region EUW1
    python -m presentation.cli.decay_command check-matches
    python -m presentation.cli.decay_command serve
    python -m presentation.cli.decay_command add-account "Faker#KR1" --region KR
    python -m presentation.cli.decay_command list-accounts
    python -m presentation.cli.decay_command stats --json
    python -m presentation.cli.decay_command refresh 3
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from config import settings
from core.logging.config import bootstrap_logging, shutdown_logging
from core.logging.logger import get_logger
from domain.entities import ReconcileEvent
from domain.enums import Region
from domain.errors import DecayTrackerError
from application.services import BatchResult
from .accounts_command import AccountsCommand, parse_riot_id
from .runtime import open_runtime
from .scheduler_command import SchedulerCommand


def format_event(event: ReconcileEvent) -> str:
    line = (
        f"{event.riot_id:<28} {event.kind.value:<14} "
        f"{event.previous_decay_days:>3} -> {event.current_decay_days:<3}"
    )
    if event.games_played:
        line += f" games={event.games_played}"
    if event.is_decaying:
        line += " DECAYING"
    if event.notes:
        line += f"  ({'; '.join(event.notes)})"
    return line


def print_batch_result(result: BatchResult, verbose: bool = False) -> None:
    print("\n" + "=" * 57)
    title = result.batch.replace("_", " ").upper()
    if result.region:
        title += f" - {result.region.value}"
    print(title)
    print("=" * 57)
    print(
        f"Found: {result.total_found}  Processed: {result.processed}  "
        f"Changed: {result.changed}  Failed: {result.failed}"
        + ("  [CANCELLED]" if result.cancelled else "")
    )
    events = result.results if verbose else [e for e in result.results if e.changed]
    for event in events:
        print(f"  {format_event(event)}")
    if result.errors:
        print("\nErrors:")
        for error in result.errors:
            print(f"  link {error.link_id} {error.riot_id}: {error.error_type}: {error.error}")


def make_progress_cb(label: str):
    width = 30

    def _progress(current: int, total: int) -> None:
        cur = min(max(0, current), total) if total else max(0, current)
        filled = int(width * (cur / total)) if total else 0
        bar = "█" * filled + "-" * (width - filled)
        print(f"\r{label} | {bar} | {cur}/{total}", end="", flush=True)
        if total and cur >= total:
            print("", flush=True)

    return _progress


class DecayCommand:
    """Run the decay batches by hand."""

    def __init__(self, verbose: bool = False, as_json: bool = False) -> None:
        self.verbose = verbose
        self.as_json = as_json
        self._log = get_logger(__name__, service="decay-cli")

    def _report(self, result: BatchResult) -> None:
        if self.as_json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            print_batch_result(result, self.verbose)

    async def run_decay(self, region: Optional[Region] = None) -> List[BatchResult]:
        async with open_runtime(progress_callback=make_progress_cb("decay")) as rt:
            results = await rt.trigger.trigger_decay(region)
        for result in results:
            self._report(result)
        return results

    async def check_matches(self) -> Optional[BatchResult]:
        async with open_runtime(progress_callback=make_progress_cb("matches")) as rt:
            result = await rt.trigger.trigger_match_history()
        if result is not None:
            self._report(result)
        return result

    async def refresh(self, link_id: int) -> ReconcileEvent:
        async with open_runtime() as rt:
            outcome = await rt.reconciliation.refresh_link(link_id)
        if self.as_json:
            print(json.dumps(outcome.event.to_dict(), indent=2))
            return outcome.event
        print(f"  {format_event(outcome.event)}")
        print(f"  {outcome.account.riot_id}: {outcome.account.rank_display}, "
              f"{outcome.link.decay_status} ({outcome.link.remaining_decay_days} days)")
        return outcome.event

    async def run_interactive(self) -> None:
        while True:
            print("\n=== Decay ===")
            print("1) Run daily decrement (all scheduled regions)")
            print("2) Run daily decrement for one region")
            print("3) Check match history")
            print("4) Refresh one link")
            print("5) Back")
            choice = input("Choose: ").strip()
            try:
                if choice == "1":
                    await self.run_decay()
                elif choice == "2":
                    codes = ", ".join(r.value for r in Region.supported_regions())
                    region = Region.from_string(input(f"Region ({codes}): "))
                    await self.run_decay(region)
                elif choice == "3":
                    await self.check_matches()
                elif choice == "4":
                    await self.refresh(int(input("Link id: ").strip()))
                elif choice == "5":
                    return
                else:
                    print("Invalid option.", flush=True)
            except (DecayTrackerError, ValueError) as e:
                self._log.warning(lambda: f"decay-menu-failed {e}")
                print(f"Error: {e}", flush=True)


def _region_arg(value: str) -> Region:
    try:
        return Region.from_string(value)
    except DecayTrackerError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="decay", description="Ranked decay tracker")
    parser.add_argument("-v", "--verbose", action="store_true", help="print unchanged accounts too")
    parser.add_argument("--json", action="store_true", help="machine-readable output")
    sub = parser.add_subparsers(dest="command", required=True)

    decay = sub.add_parser("decay", help="run the daily decrement now")
    decay.add_argument("--region", type=_region_arg, default=None)

    sub.add_parser("check-matches", help="reconcile every account against its match history")
    sub.add_parser("serve", help="run the scheduler until interrupted")

    add = sub.add_parser("add-account", help="start tracking a riot id")
    add.add_argument("riot_id", help="GameName#TAG")
    add.add_argument("--region", type=_region_arg, required=True)
    add.add_argument("--days", type=int, default=28, help="remaining decay days as shown in client")
    add.add_argument("--user", default=None, help="owner auth id")

    ls = sub.add_parser("list-accounts", help="list tracked accounts")
    ls.add_argument("--all", action="store_true", help="include inactive links")
    ls.add_argument("--user", default=None, help="owner auth id")

    stats = sub.add_parser("stats", help="decay summary over tracked accounts")
    stats.add_argument("--user", default=None, help="owner auth id")

    refresh = sub.add_parser("refresh", help="refresh one link from the provider")
    refresh.add_argument("link_id", type=int)
    return parser


async def _dispatch(args: argparse.Namespace) -> int:
    if args.command == "decay":
        results = await DecayCommand(args.verbose, args.json).run_decay(args.region)
        return 1 if any(r.errors for r in results) else 0
    if args.command == "check-matches":
        result = await DecayCommand(args.verbose, args.json).check_matches()
        return 1 if result is not None and result.errors else 0
    if args.command == "serve":
        await SchedulerCommand().run()
        return 0
    if args.command == "add-account":
        game_name, tag_line = parse_riot_id(args.riot_id)
        await AccountsCommand(args.user).add(game_name, tag_line, args.region, args.days)
        return 0
    if args.command == "list-accounts":
        await AccountsCommand(args.user).list(include_inactive=args.all, as_json=args.json)
        return 0
    if args.command == "stats":
        await AccountsCommand(args.user).stats(as_json=args.json)
        return 0
    if args.command == "refresh":
        await DecayCommand(args.verbose, args.json).refresh(args.link_id)
        return 0
    return 2


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    bootstrap_logging(
        service="decay-tracker",
        level=settings.LOG_LEVEL,
        log_dir=settings.LOG_DIR,
    )
    try:
        return asyncio.run(_dispatch(args))
    except (DecayTrackerError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        shutdown_logging()


if __name__ == "__main__":
    raise SystemExit(main())
