from __future__ import annotations

from datetime import datetime
from typing import Optional

from psycopg_pool import AsyncConnectionPool

from checkin.domain.entities import VisitorProfile
from checkin.domain.ports.visitor_profile_repository import (
    VisitorProfileRepositoryPort,
)

_COLUMNS = "email, name, company, phone, cid, created_at, updated_at, expires_at"


def _row_to_profile(row) -> VisitorProfile:
    email, name, company, phone, cid, created_at, updated_at, expires_at = row
    return VisitorProfile(
        email=str(email),
        name=name,
        company=company,
        phone=phone,
        cid=cid,
        created_at=created_at,
        updated_at=updated_at,
        expires_at=expires_at,
    )


class PgVisitorProfileRepository(VisitorProfileRepositoryPort):
    """
    Postgres implementation of VisitorProfileRepositoryPort.

    Each call borrows its own connection and commits on its own; a profile
    write is a single statement, so there is no wider transaction to join.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def get_by_email(self, email: str) -> Optional[VisitorProfile]:
        if not email or not email.strip():
            return None
        sql = f"SELECT {_COLUMNS} FROM visitor_profiles WHERE email = %s"
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (email,))
                row = await cur.fetchone()
        return _row_to_profile(row) if row else None

    async def upsert(self, profile: VisitorProfile, now: datetime) -> VisitorProfile:
        # cid / expires_at only move forward when a new value is supplied
        sql = f"""
        INSERT INTO visitor_profiles ({_COLUMNS})
        VALUES (%s, %s, %s, %s, NULLIF(%s, ''), %s, %s, %s)
        ON CONFLICT (email) DO UPDATE
            SET name = EXCLUDED.name,
                company = EXCLUDED.company,
                phone = EXCLUDED.phone,
                cid = COALESCE(EXCLUDED.cid, visitor_profiles.cid),
                expires_at = COALESCE(EXCLUDED.expires_at, visitor_profiles.expires_at),
                updated_at = EXCLUDED.updated_at
        RETURNING {_COLUMNS}
        """
        params = (
            profile.email,
            profile.name,
            profile.company,
            profile.phone,
            profile.cid or "",
            now,
            now,
            profile.expires_at,
        )
        async with self._pool.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(sql, params)
                    row = await cur.fetchone()
        if not row:
            raise RuntimeError("visitor profile upsert returned no row")
        return _row_to_profile(row)
