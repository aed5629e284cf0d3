"""Create the configured PostgreSQL database if it does not exist yet."""
from __future__ import annotations

import argparse
import logging
import sys
from urllib.parse import urlsplit, urlunsplit

import psycopg
from psycopg import sql

from playsphere.core.logging import setup_logging
from playsphere.core.settings import settings

logger = logging.getLogger("playsphere.ensure_db")


def to_libpq_url(uri: str) -> str:
    """Return ``uri`` with any SQLAlchemy driver suffix removed.

    ``postgresql+psycopg://u:p@h/db`` becomes ``postgresql://u:p@h/db``;
    surrounding quotes left over from .env files are stripped.
    """
    uri = (uri or "").strip().strip("'\"")
    if not uri:
        raise ValueError("DATABASE_URL is empty")
    parts = urlsplit(uri)
    scheme = parts.scheme.split("+", 1)[0]
    if scheme not in {"postgresql", "postgres"}:
        raise ValueError(f"Not a PostgreSQL URL: {uri!r}")
    return urlunsplit(("postgresql", parts.netloc, parts.path, parts.query, parts.fragment))


def split_maintenance_url(db_url: str) -> tuple[str, str]:
    """Return ``(maintenance_url, database_name)`` for ``db_url``."""
    parts = urlsplit(to_libpq_url(db_url))
    database = parts.path.lstrip("/") or "postgres"
    maintenance = urlunsplit(("postgresql", parts.netloc, "/postgres", parts.query, ""))
    return maintenance, database


def ensure_database_exists(db_url: str) -> bool:
    """Create the database named in ``db_url``; return True if it was created."""
    maintenance_url, database = split_maintenance_url(db_url)
    with psycopg.connect(maintenance_url, autocommit=True) as conn, conn.cursor() as cur:
        cur.execute("SELECT 1 FROM pg_database WHERE datname = %s", (database,))
        if cur.fetchone() is not None:
            logger.info("Database %s already exists", database)
            return False
        cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(database)))
    logger.info("Created database %s", database)
    return True


def reset_schema(db_url: str) -> None:
    """Drop every table by recreating the public schema."""
    with psycopg.connect(to_libpq_url(db_url), autocommit=True) as conn, conn.cursor() as cur:
        cur.execute("DROP SCHEMA IF EXISTS public CASCADE")
        cur.execute("CREATE SCHEMA public")
        cur.execute("GRANT ALL ON SCHEMA public TO public")
    logger.info("Recreated the public schema")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Ensure the configured database exists")
    parser.add_argument(
        "--drop-tables",
        action="store_true",
        help="Recreate the public schema after ensuring the database exists.",
    )
    parser.add_argument("--url", default=None, help="Override the configured database URL")
    args = parser.parse_args(argv)

    setup_logging()
    url = args.url or settings.effective_database_url
    try:
        ensure_database_exists(url)
        if args.drop_tables:
            reset_schema(url)
    except (ValueError, psycopg.Error) as exc:
        logger.error("ensure_db failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
