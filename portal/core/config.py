from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _getfloat(name: str, default: str, *, minimum: float = 0.0) -> float:
    raw = _getenv(name, default)
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number (got {raw!r})") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum} (got {raw!r})")
    return value


def _getint(name: str, default: str, *, minimum: int = 0) -> int:
    raw = _getenv(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum} (got {raw!r})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    staff_webhook_url: str | None = None
    applications_webhook_url: str | None = None
    certificate_poll_attempts: int = 5
    certificate_poll_initial_delay: float = 3.0
    certificate_poll_interval: float = 4.0
    progress_cache_ttl: int = 300
    jwt_public_key: str | None = None
    jwt_issuer: str = "oakridge-auth"
    jwt_audience: str = "oakridge-portal"

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
    log_json_raw = _getenv("LOG_JSON", "false").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if log_json_raw not in ("true", "false", "1", "0"):
        raise ValueError(f"LOG_JSON must be true|false (got {log_json_raw!r})")

    port = _getint("PORT", "8000", minimum=1)

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("true", "1"),
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        staff_webhook_url=_getenv("STAFF_WEBHOOK_URL", "") or None,
        applications_webhook_url=_getenv("APPLICATIONS_WEBHOOK_URL", "") or None,
        certificate_poll_attempts=_getint(
            "CERTIFICATE_POLL_ATTEMPTS", "5", minimum=1
        ),
        certificate_poll_initial_delay=_getfloat(
            "CERTIFICATE_POLL_INITIAL_DELAY", "3.0"
        ),
        certificate_poll_interval=_getfloat("CERTIFICATE_POLL_INTERVAL", "4.0"),
        progress_cache_ttl=_getint("PROGRESS_CACHE_TTL", "300", minimum=1),
        jwt_public_key=os.environ.get("JWT_PUBLIC_KEY", "").strip() or None,
        jwt_issuer=_getenv("JWT_ISSUER", "oakridge-auth"),
        jwt_audience=_getenv("JWT_AUDIENCE", "oakridge-portal"),
    )


SETTINGS = load_settings()
