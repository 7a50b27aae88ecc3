from __future__ import annotations

import pytest

from portal.core.config import AppEnv, Settings, load_settings

_POLL_VARS = (
    "CERTIFICATE_POLL_ATTEMPTS",
    "CERTIFICATE_POLL_INITIAL_DELAY",
    "CERTIFICATE_POLL_INTERVAL",
)

# ---- valid values ----


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("APP_ENV", "LOG_LEVEL", "PROGRESS_CACHE_TTL", *_POLL_VARS):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"
    assert settings.certificate_poll_attempts == 5
    assert settings.certificate_poll_initial_delay == 3.0
    assert settings.certificate_poll_interval == 4.0
    assert settings.progress_cache_ttl == 300
    assert settings.jwt_issuer == "oakridge-auth"
    assert settings.jwt_audience == "oakridge-portal"


def test_load_settings_respects_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("LOG_LEVEL", "error")
    monkeypatch.setenv("CERTIFICATE_POLL_ATTEMPTS", "2")
    monkeypatch.setenv("CERTIFICATE_POLL_INTERVAL", "0.5")
    monkeypatch.setenv("STAFF_WEBHOOK_URL", "https://hooks.example.test/staff")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "error"
    assert settings.certificate_poll_attempts == 2
    assert settings.certificate_poll_interval == 0.5
    assert settings.staff_webhook_url == "https://hooks.example.test/staff"


def test_load_settings_normalizes_case(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "PROD")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "debug"


def test_blank_urls_mean_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "   ")
    monkeypatch.setenv("APPLICATIONS_WEBHOOK_URL", "")
    settings = load_settings()
    assert settings.database_url is None
    assert settings.applications_webhook_url is None


# ---- invalid values ----


def test_load_settings_rejects_invalid_app_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "staging")
    with pytest.raises(ValueError, match="APP_ENV must be dev|test|prod"):
        load_settings()


def test_load_settings_rejects_invalid_log_level(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "verbose")
    with pytest.raises(ValueError, match="LOG_LEVEL must be debug|info|warning|error"):
        load_settings()


def test_load_settings_rejects_non_numeric_poll_interval(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("CERTIFICATE_POLL_INTERVAL", "soon")
    with pytest.raises(ValueError, match="CERTIFICATE_POLL_INTERVAL must be a number"):
        load_settings()


def test_load_settings_rejects_zero_poll_attempts(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("CERTIFICATE_POLL_ATTEMPTS", "0")
    with pytest.raises(ValueError, match="CERTIFICATE_POLL_ATTEMPTS must be >= 1"):
        load_settings()


def test_load_settings_rejects_negative_delay(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("CERTIFICATE_POLL_INITIAL_DELAY", "-1")
    with pytest.raises(ValueError, match="must be >= 0"):
        load_settings()


# ---- Settings properties ----


def _make_settings(app_env: AppEnv = "dev") -> Settings:
    return Settings(  # type: ignore[arg-type]
        app_env=app_env,
        log_level="info",
        log_json=False,
        port=8000,
        database_url=None,
        redis_url=None,
    )


def test_settings_env_flags() -> None:
    assert _make_settings("dev").is_dev is True
    assert _make_settings("test").is_test is True
    assert _make_settings("prod").is_prod is True
    assert _make_settings("prod").is_dev is False


def test_settings_is_frozen() -> None:
    s = _make_settings()
    with pytest.raises(AttributeError):
        s.app_env = "prod"  # type: ignore[misc]
