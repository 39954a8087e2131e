"""
Environment-driven settings.

Routers and services never read os.environ directly; they get a Settings
instance from create_app.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    db_path: Path
    log_level: str
    log_dir: Path
    host: str
    port: int


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str | None, default: int) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    return Settings(
        db_path=Path(os.getenv("DB_PATH", "./database.json")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_dir=Path(os.getenv("LOG_DIR", "./logs")),
        host=os.getenv("HOST", "127.0.0.1"),
        port=_int(os.getenv("PORT"), 8080),
    )
