from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from taskboard.config import PROJECT_ROOT, SETTINGS

# Engine INFO output logs every snapshot statement.
_QUIET_LOGGERS = ("sqlalchemy.engine", "alembic.runtime.migration")


def setup_logging(level: str | None = None) -> Path:
    log_dir = Path(SETTINGS.log_dir)
    if not log_dir.is_absolute():
        log_dir = PROJECT_ROOT / log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / SETTINGS.log_file

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(
        log_file, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=(level or SETTINGS.log_level).upper(),
        handlers=[file_handler, console_handler],
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging to %s", log_file)
    return log_file
