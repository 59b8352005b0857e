"""Logging setup for the plugin process."""

from __future__ import annotations

import logging

from deckctl.core.errors import SettingsError

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s [%(threadName)s]: %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def setup_logging(level: int | str = logging.INFO, log_file: str | None = None) -> None:
    if isinstance(level, str):
        level = level.strip().upper()
        if level not in LOG_LEVELS:
            raise SettingsError(f"Unknown log level '{level}'. Allowed: {', '.join(LOG_LEVELS)}")
    # The host discards plugin stdout, so a file is the only durable sink.
    if log_file:
        logging.basicConfig(level=level, format=LOG_FORMAT, filename=log_file, force=True)
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


__all__ = ["LOG_LEVELS", "setup_logging"]
