from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _resolve_project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


PROJECT_ROOT = _resolve_project_root()


def load_env() -> None:
    env_name = os.getenv("APP_ENV", "development")
    candidates = [Path.cwd(), PROJECT_ROOT]
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_file: str = "taskboard.log"
    reminders_enabled: bool = True
    reminder_check_interval_ms: int = 60_000
    notification_timeout_ms: int = 10_000
    reminder_retention_days: int | None = None
    default_reminder_lead: str = "1day"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _env_optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


load_env()

DATABASE_URL = os.getenv("DATABASE_URL", "").strip() or (
    f"sqlite:///{(PROJECT_ROOT / 'data' / 'taskboard.db').as_posix()}"
)

SETTINGS = Settings(
    database_url=DATABASE_URL,
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_dir=os.getenv("LOG_DIR", "logs"),
    log_file=os.getenv("LOG_FILE", "").strip() or "taskboard.log",
    reminders_enabled=_env_flag("REMINDERS_ENABLED", True),
    reminder_check_interval_ms=int(os.getenv("REMINDER_CHECK_INTERVAL_MS", "60000")),
    notification_timeout_ms=int(os.getenv("NOTIFICATION_TIMEOUT_MS", "10000")),
    reminder_retention_days=_env_optional_int("REMINDER_RETENTION_DAYS"),
    default_reminder_lead=os.getenv("DEFAULT_REMINDER_LEAD", "1day").strip() or "1day",
)
