"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_PERMALINK_SECRET = "logiq_permalink_integrity_v2_2026"


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return max(minimum, value)


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    state_dir: Path
    permalink_secret: str
    public_base_url: str
    save_expiry_hours: int
    log_level: str
    log_format: str

    @property
    def save_expiry_ms(self) -> int:
        return self.save_expiry_hours * 60 * 60 * 1000


def load_settings() -> Settings:
    log_format = _env_str("APP_LOG_FORMAT", "json").lower()
    if log_format not in {"json", "text"}:
        log_format = "json"
    return Settings(
        state_dir=Path(_env_str("LOGIQ_STATE_DIR", ".data/sessions")),
        permalink_secret=_env_str("LOGIQ_PERMALINK_SECRET", DEFAULT_PERMALINK_SECRET),
        public_base_url=_env_str("LOGIQ_PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
        save_expiry_hours=_env_int("LOGIQ_SAVE_EXPIRY_HOURS", 24, minimum=1),
        log_level=_env_str("APP_LOG_LEVEL", "INFO").upper(),
        log_format=log_format,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
