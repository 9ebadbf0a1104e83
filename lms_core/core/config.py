from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so type casting and validation stay in one place
    return os.environ.get(name, default).strip()


def _getenv_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = _getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum} (got {value})")
    return value


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    progress_cache_ttl_seconds: int = 300
    certificate_cache_ttl_seconds: int = 3600
    certificate_generation_timeout_seconds: int = 30
    cache_sweep_interval_seconds: int = 300

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    database_url = _getenv("DATABASE_URL", "") or None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv_bool("LOG_JSON", False),
        port=_getenv_int("PORT", 8000, minimum=1),
        database_url=database_url,
        progress_cache_ttl_seconds=_getenv_int(
            "PROGRESS_CACHE_TTL_SECONDS", 300, minimum=1
        ),
        certificate_cache_ttl_seconds=_getenv_int(
            "CERTIFICATE_CACHE_TTL_SECONDS", 3600, minimum=1
        ),
        certificate_generation_timeout_seconds=_getenv_int(
            "CERTIFICATE_GENERATION_TIMEOUT_SECONDS", 30, minimum=1
        ),
        cache_sweep_interval_seconds=_getenv_int(
            "CACHE_SWEEP_INTERVAL_SECONDS", 300, minimum=1
        ),
    )


# Module-level instance for process entry points (main, alembic).
# Services take their settings through constructors instead.
SETTINGS = load_settings()
