"""Root logger setup shared by the API and the CLI scripts."""

import logging
import sys

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def resolve_level(raw: str | int | None) -> int:
    """Translate a level name or number into a ``logging`` level."""
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        name = raw.strip().upper()
        if name.isdigit():
            return int(name)
        return _LEVELS.get(name, logging.INFO)
    return logging.INFO


def setup_logging(level: str | int | None = None) -> None:
    """Initialize the root logger once with a stdout handler.

    Level precedence: explicit ``level`` argument, then ``settings.log_level``.
    """
    if level is None:
        from playsphere.core.settings import settings

        level = settings.log_level

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        root.addHandler(handler)
        logging.captureWarnings(True)
    root.setLevel(resolve_level(level))
