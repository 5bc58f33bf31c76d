"""Long-running scheduler process."""
from __future__ import annotations

import asyncio
import signal

from core.logging.logger import get_logger
from .runtime import open_runtime


class SchedulerCommand:
    """Runs the daily decrement and match-history loops until SIGINT/SIGTERM."""

    def __init__(self) -> None:
        self._log = get_logger(__name__, service="scheduler-cli")

    async def run(self) -> None:
        async with open_runtime() as rt:
            await rt.fetcher.validate_api_key()
            trigger = rt.trigger
            loop = asyncio.get_running_loop()
            stop = asyncio.Event()
            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.add_signal_handler(sig, stop.set)
                except NotImplementedError:
                    # Windows event loops; Ctrl+C still raises KeyboardInterrupt
                    pass

            trigger.start()
            print("Scheduler running. Press Ctrl+C to stop.", flush=True)
            try:
                await stop.wait()
            finally:
                self._log.info("shutdown requested")
                await trigger.stop()
