from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from checkin.domain.entities import VisitorProfile


class VisitorProfileRepositoryPort(Protocol):
    async def get_by_email(self, email: str) -> Optional[VisitorProfile]:
        """Return the profile or None."""

    async def upsert(self, profile: VisitorProfile, now: datetime) -> VisitorProfile:
        """
        Create the profile if missing (created_at = updated_at = now).
        Otherwise overwrite name/company/phone, bump updated_at, and only
        replace cid/expires_at when the incoming values are set.
        Return the stored profile.
        """


class UpcomingVisitorsPort(Protocol):
    async def emails_with_meetings_between(
        self, start: datetime, end: datetime
    ) -> list[str]:
        """Distinct visitor emails with a meeting (in a known room) starting in [start, end]."""
