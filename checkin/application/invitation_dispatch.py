from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from checkin.application.invitation_tokens import InvitationTokenManager
from checkin.domain.ports.email_port import MailerPort
from checkin.domain.ports.ttl_store import TTLStorePort
from checkin.domain.ports.visitor_profile_repository import UpcomingVisitorsPort

logger = logging.getLogger(__name__)


def sent_marker_key(email: str, day: str) -> str:
    return f"register:invitation:sent:{email}:{day}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DispatchReport:
    sent: int = 0
    skipped: int = 0
    failed: int = 0


class InvitationDispatcher:
    """
    Mails a registration link to every visitor with a meeting tomorrow
    (local time of the site). A per-day marker in the store makes repeated
    runs on the same day send nothing new.
    """

    def __init__(
        self,
        tokens: InvitationTokenManager,
        store: TTLStorePort,
        mailer: MailerPort,
        visitors: UpcomingVisitorsPort,
        *,
        base_url: str,
        tz_name: str = "Asia/Taipei",
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._tokens = tokens
        self._store = store
        self._mailer = mailer
        self._visitors = visitors
        self._base_url = base_url.rstrip("/")
        self._tz = ZoneInfo(tz_name)
        self._now = now

    def tomorrow_window(self) -> tuple[datetime, datetime, str]:
        """UTC bounds of tomorrow in the site's time zone, plus its yyyymmdd tag."""
        local_today = self._now().astimezone(self._tz).date()
        tomorrow = local_today + timedelta(days=1)
        start = datetime.combine(tomorrow, time.min, tzinfo=self._tz)
        end = start + timedelta(days=1) - timedelta(seconds=1)
        return (
            start.astimezone(timezone.utc),
            end.astimezone(timezone.utc),
            tomorrow.strftime("%Y%m%d"),
        )

    async def run(self) -> DispatchReport:
        report = DispatchReport()
        if not self._base_url:
            logger.warning("base_url not configured; skipping invitation emails")
            return report

        start, end, day = self.tomorrow_window()
        emails = await self._visitors.emails_with_meetings_between(start, end)
        logger.info(
            "visitors with meetings tomorrow",
            extra={"count": len(emails), "start": start.isoformat(), "end": end.isoformat()},
        )

        for email in emails:
            marker = sent_marker_key(email, day)
            try:
                if await self._store.get(marker):
                    report.skipped += 1
                    continue
                token = await self._tokens.create(email)
                await self._mailer.send_invitation(
                    email, f"{self._base_url}/register?token={token}"
                )
                # remember until the meeting day is over
                ttl = max(1.0, (end - self._now()).total_seconds())
                await self._store.set(marker, "1", ttl)
                report.sent += 1
            except Exception:  # noqa: BLE001
                report.failed += 1
                logger.exception("invitation failed", extra={"email": email})

        logger.info(
            "invitation emails done",
            extra={"sent": report.sent, "skipped": report.skipped, "failed": report.failed},
        )
        return report
