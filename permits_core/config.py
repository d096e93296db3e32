"""Runtime settings for the permit dashboard, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

DEFAULT_DATA_PATH = "housing_data.csv"
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    data_path: Path = Path(DEFAULT_DATA_PATH)
    sample_rows: int = 500
    sample_seed: int = 42
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: DEFAULT_CORS_ORIGINS.split(","))


def load_settings(overrides: Optional[dict] = None) -> Settings:
    """Build settings from ``PERMITS_*`` environment variables plus explicit overrides."""
    log_level = os.getenv("PERMITS_LOG_LEVEL", "INFO").upper()
    if log_level not in VALID_LOG_LEVELS:
        log_level = "INFO"
    values = {
        "data_path": Path(os.getenv("PERMITS_DATA_PATH", DEFAULT_DATA_PATH)),
        "sample_rows": max(0, _env_int("PERMITS_SAMPLE_ROWS", 500)),
        "sample_seed": _env_int("PERMITS_SAMPLE_SEED", 42),
        "log_level": log_level,
        "cors_origins": [o.strip() for o in os.getenv("PERMITS_CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if o.strip()],
    }
    for key, value in (overrides or {}).items():
        if key in values:
            values[key] = Path(value) if key == "data_path" else value
    return Settings(**values)
