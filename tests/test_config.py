from __future__ import annotations

from dataclasses import replace

import pytest

from config import Settings, ensure_valid_environment, environment_summary, setup_instructions

ENV_KEYS = [
    "DATABASE_URL", "MYSQL_USER", "MYSQL_PASS", "MYSQL_HOST", "MYSQL_PORT", "MYSQL_DB",
    "SESSION_SECRET", "APP_BASE_URL", "APP_ENV", "DEMO_MODE", "SESSION_MAX_AGE_SECONDS",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        # setenv merkt sich den Ausgangszustand → auch Werte aus .env werden danach entfernt
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return tmp_path / ".env"


def test_mysql_url_is_assembled(clean_env, monkeypatch):
    monkeypatch.setenv("MYSQL_USER", "qr")
    monkeypatch.setenv("MYSQL_PASS", "p@ss")
    monkeypatch.setenv("MYSQL_HOST", "db")
    settings = Settings.from_env(clean_env)
    assert settings.database_url == "mysql+pymysql://qr:p%40ss@db:3306/qrcoder?charset=utf8mb4"


def test_development_defaults(clean_env):
    settings = Settings.from_env(clean_env)
    assert settings.database_url.startswith("sqlite:///")
    assert settings.generated_secret
    assert len(settings.session_secret) >= 32
    assert settings.session_max_age == 24 * 60 * 60
    assert not settings.demo_mode


def test_values_from_dotenv_file(clean_env):
    clean_env.write_text("APP_ENV=test\nDEMO_MODE=true\nAPP_BASE_URL=https://qr.example.com/\n")
    settings = Settings.from_env(clean_env)
    assert settings.app_env == "test"
    assert settings.demo_mode
    assert settings.app_base_url == "https://qr.example.com"


def test_valid_settings_summary(settings):
    summary = environment_summary(settings)
    assert summary["isValid"]
    assert setup_instructions(settings) is None


def test_short_secret_is_invalid(settings):
    summary = environment_summary(replace(settings, session_secret="short"))
    assert summary["invalid"] == ["SESSION_SECRET"]
    assert "SESSION_SECRET" in setup_instructions(replace(settings, session_secret="short"))


def test_production_requires_base_url(settings):
    prod = replace(settings, app_env="production", app_base_url="")
    assert environment_summary(prod)["missing"] == ["APP_BASE_URL"]
    with pytest.raises(RuntimeError):
        ensure_valid_environment(prod)


def test_non_production_only_warns(settings, caplog):
    ensure_valid_environment(replace(settings, app_base_url="qr.example.com"))
    assert "APP_BASE_URL" in caplog.text
