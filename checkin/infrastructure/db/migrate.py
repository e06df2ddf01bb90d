from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import psycopg

from checkin.logging import setup_logging
from checkin.settings import get_settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(os.environ.get("MIGRATIONS_DIR", "migrations"))
SCHEMA_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
  version    text PRIMARY KEY,
  applied_at timestamptz NOT NULL DEFAULT now()
);
"""


def pending(conn: psycopg.Connection, directory: Path) -> list[Path]:
    """SQL files in `directory` not yet recorded in schema_migrations, in name order."""
    with conn.cursor() as cur:
        cur.execute(SCHEMA_TABLE_SQL)
        cur.execute("SELECT version FROM schema_migrations")
        done = {r[0] for r in cur.fetchall()}
    conn.commit()
    return [p for p in sorted(directory.glob("*.sql")) if p.stem not in done]


def apply(conn: psycopg.Connection, path: Path) -> None:
    with conn.cursor() as cur:
        cur.execute(path.read_text(encoding="utf-8"))
        cur.execute(
            "INSERT INTO schema_migrations (version) VALUES (%s)", (path.stem,)
        )
    conn.commit()


def main(argv: list[str]) -> int:
    setup_logging(get_settings().log_level)
    cmd = argv[1] if len(argv) > 1 else "up"
    if cmd not in ("up", "status"):
        logger.error("usage: python -m checkin.infrastructure.db.migrate [up|status]")
        return 2
    if not MIGRATIONS_DIR.is_dir():
        logger.error("migrations dir not found", extra={"dir": str(MIGRATIONS_DIR)})
        return 2

    with psycopg.connect(get_settings().database_url, autocommit=False) as conn:
        todo = pending(conn, MIGRATIONS_DIR)
        if cmd == "status":
            for path in todo:
                logger.info("pending migration", extra={"version": path.stem})
            return 0
        for path in todo:
            try:
                apply(conn, path)
            except psycopg.Error as e:
                conn.rollback()
                logger.error(
                    "migration failed", extra={"version": path.stem, "error": str(e)}
                )
                return 1
            logger.info("migration applied", extra={"version": path.stem})
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
