"""Apply Alembic migrations up to head."""
from __future__ import annotations

import argparse
from pathlib import Path

from alembic import command
from alembic.config import Config

from playsphere.core.logging import setup_logging
from playsphere.core.settings import settings

MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"


def build_config(url: str | None = None) -> Config:
    """Return an Alembic config pointing at the project's migrations folder."""
    cfg = Config(str(MIGRATIONS_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", url or settings.effective_database_url)
    return cfg


def run_upgrade(revision: str = "head", url: str | None = None) -> None:
    command.upgrade(build_config(url), revision)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Upgrade the database schema")
    parser.add_argument("revision", nargs="?", default="head")
    parser.add_argument("--url", default=None, help="Override the configured database URL")
    args = parser.parse_args(argv)
    setup_logging()
    run_upgrade(args.revision, args.url)


if __name__ == "__main__":
    main()
