from __future__ import annotations

from psycopg_pool import AsyncConnectionPool

from checkin.domain.ports.config_source import ConfigSourcePort


class PgConfigSource(ConfigSourcePort):
    """Reads admin-editable settings from the `secrets` (id, value) table."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def get(self, key: str) -> str | None:
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT value FROM secrets WHERE id = %s", (key,))
                row = await cur.fetchone()
        if not row or row[0] is None:
            return None
        return str(row[0])
