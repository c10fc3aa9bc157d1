"""Worker process entry point: runs the polling scheduler."""

from __future__ import annotations

import asyncio
import signal
import sys

from flowpieces.common.logging import get_logger, setup_logging
from flowpieces.common.redis_client import close_redis, get_redis
from flowpieces.common.settings import get_settings
from flowpieces.worker.scheduler import run_scheduler

log = get_logger(__name__)

_shutdown = asyncio.Event()


def _handle_signal(sig: signal.Signals) -> None:
    log.info("shutdown_signal", signal=sig.name)
    _shutdown.set()


async def main() -> None:
    """Start the worker and run until SIGTERM/SIGINT."""
    settings = get_settings()
    setup_logging(settings.log_level)

    log.info("worker_starting", service=settings.service_name)

    await get_redis()

    # Signal handlers are Unix only; Windows relies on KeyboardInterrupt
    if sys.platform != "win32":
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda s=sig: _handle_signal(s))

    try:
        await run_scheduler(_shutdown)
    finally:
        await close_redis()
        log.info("worker_stopped")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
