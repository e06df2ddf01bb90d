from __future__ import annotations

import logging
import socket
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Protocol

from checkin.domain.ports.daily_steps import NotifierPort
from checkin.domain.ports.ttl_store import TTLStorePort

logger = logging.getLogger(__name__)

LOCK_KEY = "daily_scheduled_task:lock"


class _Step(Protocol):
    async def run(self) -> Any: ...


def make_instance_id() -> str:
    return f"{socket.gethostname()}-{uuid.uuid4()}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DailyTaskRunner:
    """
    Runs the daily job on at most one process of the deployment.

    The store lock is taken with SET-if-absent and a TTL, and given back with
    compare-and-delete on this process's instance id. The TTL covers a
    holder that dies mid-run. Losing the race is the normal outcome for all
    but one instance and is only logged.
    """

    def __init__(
        self,
        store: TTLStorePort,
        *,
        instance_id: str | None = None,
        lock_ttl_seconds: int = 300,
        contacts_sync: _Step | None = None,
        calendar_sync: _Step | None = None,
        invitations: _Step | None = None,
        notifier: NotifierPort | None = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self.instance_id = instance_id or make_instance_id()
        self._lock_ttl = lock_ttl_seconds
        self._steps: list[tuple[str, _Step | None]] = [
            ("contacts sync", contacts_sync),
            ("calendar sync", calendar_sync),
            ("registration invitations", invitations),
        ]
        self._notifier = notifier
        self._now = now

    async def run_guarded(self) -> bool:
        """True if this call ran the task, False if another holder had the lock."""
        acquired = await self._store.try_acquire_lock(
            LOCK_KEY, self.instance_id, self._lock_ttl
        )
        if not acquired:
            logger.info(
                "daily task lock held elsewhere; skipping",
                extra={"instance_id": self.instance_id},
            )
            return False

        logger.info("daily task lock acquired", extra={"instance_id": self.instance_id})
        try:
            await self._run_steps()
        finally:
            released = await self._store.release_lock(LOCK_KEY, self.instance_id)
            if released:
                logger.info(
                    "daily task lock released", extra={"instance_id": self.instance_id}
                )
            else:
                logger.warning(
                    "daily task lock was not ours anymore (expired?)",
                    extra={"instance_id": self.instance_id},
                )
        return True

    async def _run_steps(self) -> None:
        started = self._now()
        logger.info(
            "daily task started",
            extra={"instance_id": self.instance_id, "started_at": started.isoformat()},
        )

        failed: list[str] = []
        for name, step in self._steps:
            if step is None:
                logger.warning("daily task step not configured; skipping", extra={"step": name})
                continue
            if not await self._run_step(name, step.run):
                failed.append(name)

        if self._notifier is not None:
            message = (
                "Daily scheduled task ran\n"
                f"Started (UTC): {started:%Y-%m-%d %H:%M:%S}\n"
                f"Instance: {self.instance_id}"
            )
            if failed:
                message += f"\nFailed steps: {', '.join(failed)}"
            await self._run_step("admin notification", lambda: self._notifier.notify(message))
        else:
            logger.warning("no admin notifier configured; skipping notification")

        logger.info(
            "daily task finished",
            extra={
                "instance_id": self.instance_id,
                "duration_s": round((self._now() - started).total_seconds(), 3),
                "failed_steps": failed,
            },
        )

    async def _run_step(self, name: str, call: Callable[[], Awaitable[Any]]) -> bool:
        # one step failing must not stop its siblings
        t0 = time.monotonic()
        try:
            await call()
        except Exception:  # noqa: BLE001
            logger.exception("daily task step failed", extra={"step": name})
            return False
        logger.info(
            "daily task step done",
            extra={"step": name, "duration_s": round(time.monotonic() - t0, 3)},
        )
        return True
