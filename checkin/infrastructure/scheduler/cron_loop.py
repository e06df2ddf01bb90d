from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from croniter import croniter

from checkin.application.daily_task import DailyTaskRunner
from checkin.domain.ports.config_source import ConfigSourcePort

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CronScheduler:
    """
    One per process. Each cycle re-reads the cron expression from the config
    source, so an admin can change the schedule without a restart.
    Every instance wakes up; the runner's lock decides who does the work.
    """

    def __init__(
        self,
        runner: DailyTaskRunner,
        config: ConfigSourcePort,
        *,
        cron_key: str = "daily_task_cron",
        default_cron: str = "*/15 * * * *",
        startup_delay: float = 5.0,
        error_pause: float = 3600.0,
        now: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._runner = runner
        self._config = config
        self._cron_key = cron_key
        self._default_cron = default_cron
        self._startup_delay = startup_delay
        self._error_pause = error_pause
        self._now = now
        self._sleep = sleep
        self._last_fire: datetime | None = None

    async def current_expression(self) -> str:
        try:
            expr = await self._config.get(self._cron_key)
        except Exception:  # noqa: BLE001
            logger.warning(
                "could not read cron expression; using default",
                extra={"key": self._cron_key, "default": self._default_cron},
                exc_info=True,
            )
            return self._default_cron
        expr = (expr or "").strip()
        if not expr:
            return self._default_cron
        if not croniter.is_valid(expr):
            logger.warning(
                "invalid cron expression; using default",
                extra={"expression": expr, "default": self._default_cron},
            )
            return self._default_cron
        return expr

    async def next_fire(self) -> datetime:
        """
        Next slot strictly after both now and the last slot fired. The sleep
        runs on the monotonic clock, so on waking the wall clock may still
        read a hair before the slot that just fired.
        """
        expr = await self.current_expression()
        base = self._now()
        if self._last_fire is not None and self._last_fire > base:
            base = self._last_fire
        return croniter(expr, base).get_next(datetime)

    async def run_once(self) -> bool:
        """Sleep until the next fire time, then try the guarded task."""
        fire_at = await self.next_fire()
        delay = max(0.0, (fire_at - self._now()).total_seconds())
        logger.info(
            "next daily task run scheduled",
            extra={"fire_at": fire_at.isoformat(), "in_s": round(delay, 1)},
        )
        await self._sleep(delay)
        self._last_fire = fire_at
        return await self._runner.run_guarded()

    async def run_forever(self) -> None:
        logger.info("scheduler started", extra={"instance_id": self._runner.instance_id})
        try:
            await self._sleep(self._startup_delay)
            while True:
                try:
                    await self.run_once()
                except Exception:  # noqa: BLE001
                    logger.exception(
                        "daily task cycle failed; pausing",
                        extra={"pause_s": self._error_pause},
                    )
                    await self._sleep(self._error_pause)
        except asyncio.CancelledError:
            logger.info("scheduler stopped")
            raise
