from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    database_url: str
    api_root: str
    default_board_title: str
    log_level: str
    host: str
    port: int
    identity_path: Path


@lru_cache
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./flashboard.db"),
        api_root=os.getenv("API_ROOT", "/api/kb").rstrip("/"),
        default_board_title=os.getenv("DEFAULT_BOARD_TITLE", "My Board"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        identity_path=Path(
            os.getenv(
                "FLASHBOARD_IDENTITY_PATH",
                str(Path.home() / ".local" / "share" / "flashboard" / "device_id"),
            )
        ),
    )
