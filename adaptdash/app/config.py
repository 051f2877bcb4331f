from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from adaptdash.app.errors import ConfigError


COLUMN_MODES = ("position", "header")


def _env_str(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key)
    if v is None:
        return default
    v = v.strip()
    return v if v else default


def _env_int(key: str, default: int) -> int:
    v = _env_str(key)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_float(key: str, default: float) -> float:
    v = _env_str(key)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    v = _env_str(key)
    if v is None:
        return default
    return v.lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class Settings:
    # Logging
    log_level: str
    log_json: bool

    # Ingestion
    lexicon: str
    column_mode: str

    # Analysis defaults
    high_threshold: float
    low_confidence_count: int
    top_impacts: int
    min_impact_count: int
    group_size_max: int

    @staticmethod
    def from_env() -> "Settings":
        # Read configuration from environment variables.
        # Keep defaults safe and local-friendly.
        column_mode = (_env_str("APP_COLUMN_MODE", "position") or "position").lower()
        if column_mode not in COLUMN_MODES:
            raise ConfigError(f"APP_COLUMN_MODE must be one of {COLUMN_MODES}, got {column_mode!r}")

        return Settings(
            log_level=_env_str("APP_LOG_LEVEL", "INFO") or "INFO",
            log_json=_env_bool("APP_LOG_JSON", True),

            lexicon=(_env_str("APP_LEXICON", "en") or "en").lower(),
            column_mode=column_mode,

            high_threshold=_env_float("APP_HIGH_THRESHOLD", 4.0),
            low_confidence_count=_env_int("APP_LOW_CONFIDENCE_COUNT", 5),
            top_impacts=_env_int("APP_TOP_IMPACTS", 15),
            min_impact_count=_env_int("APP_MIN_IMPACT_COUNT", 3),
            group_size_max=_env_int("APP_GROUP_SIZE_MAX", 50),
        )
