from __future__ import annotations

from datetime import datetime

from psycopg_pool import AsyncConnectionPool

from checkin.domain.ports.visitor_profile_repository import UpcomingVisitorsPort


class PgUpcomingVisitorsRepository(UpcomingVisitorsPort):
    """
    Read-only view over the visitor/meeting tables maintained by the
    calendar sync and the admin dashboard.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def emails_with_meetings_between(
        self, start: datetime, end: datetime
    ) -> list[str]:
        # only meetings booked in a room we know about
        sql = """
        SELECT DISTINCT v.visitor_email
        FROM visitors v
        JOIN meetings m ON m.id = v.meeting_id
        JOIN meeting_rooms r ON r.id = m.meetingroom_id
        WHERE m.start_at >= %s
          AND m.start_at <= %s
          AND v.visitor_email IS NOT NULL
          AND v.visitor_email <> ''
        ORDER BY v.visitor_email
        """
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (start, end))
                rows = await cur.fetchall()
        return [str(r[0]) for r in rows or ()]
