"""Load the game catalog from a ``Games.json`` export.

Each entry looks like::

    {"Game": "Valorant", "Category": ["Shooter"], "Support": ["PC"],
     "Contact": "support@example.com", "Downloads": 1000000}

``Category`` and ``Support`` may also be a single string. Entries repeating a
game name are skipped; the existing catalog is replaced.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from playsphere.core.logging import setup_logging
from playsphere.db.session import SessionLocal
from playsphere.services.storage import Storage

logger = logging.getLogger("playsphere.seed_games")

BATCH_SIZE = 100


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


def normalize_entries(entries: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Convert raw entries to Game column dicts, dropping repeated names."""
    seen: set[str] = set()
    rows: list[dict[str, Any]] = []
    for entry in entries:
        name = str(entry.get("Game") or "").strip()
        if not name:
            logger.warning("Skipping entry without a game name: %r", entry)
            continue
        if name in seen:
            logger.info("Skipping duplicate game entry: %s", name)
            continue
        seen.add(name)
        rows.append(
            {
                "name": name,
                "categories": _as_list(entry.get("Category")),
                "platforms": _as_list(entry.get("Support")),
                "contact": entry.get("Contact") or None,
                "downloads": int(entry.get("Downloads") or 0),
            }
        )
    return rows


def load_games_file(path: Path) -> list[dict[str, Any]]:
    """Read and normalize a Games.json file."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a JSON array")
    logger.info("Found %d entries in %s", len(raw), path)
    rows = normalize_entries(raw)
    logger.info("%d unique games to import", len(rows))
    return rows


def seed_games(path: Path, batch_size: int = BATCH_SIZE) -> int:
    """Replace the catalog with the contents of ``path``; return the count imported."""
    rows = load_games_file(path)
    with SessionLocal() as db:
        return Storage(db).replace_games(rows, batch_size=batch_size)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the game catalog from Games.json")
    parser.add_argument("path", nargs="?", type=Path, default=Path("Games.json"))
    parser.add_argument("--batch-size", type=int, default=BATCH_SIZE)
    args = parser.parse_args(argv)

    setup_logging()
    try:
        count = seed_games(args.path, args.batch_size)
    except (OSError, ValueError) as exc:
        logger.error("Seeding failed: %s", exc)
        return 1
    logger.info("Imported %d games", count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
