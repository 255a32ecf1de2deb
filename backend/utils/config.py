"""Application settings loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if not value:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    database_busy_timeout_seconds: float
    reservation_currency: str
    reservation_max_attempts: int
    reservation_retry_backoff_seconds: float
    date_format_regex: str
    auth_token_ttl_minutes: int
    auth_password_min_length: int
    auth_password_bcrypt_rounds: int
    seed_demo_catalog: bool


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process; tests derive variants with replace()."""
    load_dotenv()
    return Settings(
        app_name=_env_str("HRS_APP_NAME", "Hotel Reservation Service"),
        app_version=_env_str("HRS_APP_VERSION", "1.0.0"),
        log_level=_env_str("HRS_LOG_LEVEL", "INFO"),
        database_path=Path(
            _env_str("HRS_DATABASE_PATH", str(PROJECT_ROOT / "data" / "hotel.db"))
        ),
        database_busy_timeout_seconds=_env_float("HRS_DATABASE_BUSY_TIMEOUT", 2.0),
        reservation_currency=_env_str("HRS_RESERVATION_CURRENCY", "PLN"),
        reservation_max_attempts=_env_int("HRS_RESERVATION_MAX_ATTEMPTS", 3),
        reservation_retry_backoff_seconds=_env_float("HRS_RESERVATION_RETRY_BACKOFF", 0.05),
        date_format_regex=r"^\d{4}-\d{2}-\d{2}$",
        auth_token_ttl_minutes=_env_int("HRS_AUTH_TOKEN_TTL_MINUTES", 7 * 24 * 60),
        auth_password_min_length=_env_int("HRS_AUTH_PASSWORD_MIN_LENGTH", 8),
        auth_password_bcrypt_rounds=_env_int("HRS_AUTH_PASSWORD_BCRYPT_ROUNDS", 10),
        seed_demo_catalog=_env_bool("HRS_SEED_DEMO_CATALOG", True),
    )
