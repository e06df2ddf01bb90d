from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import suppress

from checkin.logging import setup_logging
from checkin.settings import get_settings
from checkin.wiring import close_resources, open_resources

logger = logging.getLogger(__name__)


async def _run() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)

    resources = await open_resources(settings)
    logger.info("worker: resources opened")

    stop = asyncio.Event()

    def _on_signal(*_: object) -> None:
        logger.info("worker: stop signal received")
        stop.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, _on_signal)

    scheduler_task = asyncio.create_task(resources.scheduler.run_forever())
    logger.info("worker: scheduler running")

    await stop.wait()

    scheduler_task.cancel()
    with suppress(asyncio.CancelledError):
        await scheduler_task

    await close_resources(resources)
    logger.info("worker: stopped cleanly")


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
