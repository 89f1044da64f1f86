import importlib

import pytest

from licensegate.config import DEFAULT_DATABASE_URL, Settings


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    monkeypatch.setattr("licensegate.config.load_dotenv", lambda: None)
    for name in (
        "DATABASE_URL",
        "ACTIVATION_SECRET",
        "REQUIRE_SIGNATURE",
        "SIGNATURE_WINDOW_SECONDS",
        "ACTIVATION_DELAY_MIN_MS",
        "ACTIVATION_DELAY_MAX_MS",
        "ADMIN_TOKEN",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env()
    assert settings.database_url == DEFAULT_DATABASE_URL
    assert settings.activation_secret is None
    assert settings.require_signature is False
    assert settings.signature_window_seconds == 300
    assert (settings.activation_delay_min_ms, settings.activation_delay_max_ms) == (100, 300)
    assert settings.admin_token is None
    assert settings.log_level == "INFO"


def test_values_from_environment(monkeypatch):
    monkeypatch.setenv("ACTIVATION_SECRET", " 'abc' ")
    monkeypatch.setenv("REQUIRE_SIGNATURE", "yes")
    monkeypatch.setenv("SIGNATURE_WINDOW_SECONDS", "60")
    monkeypatch.setenv("ACTIVATION_DELAY_MIN_MS", "0")
    monkeypatch.setenv("ACTIVATION_DELAY_MAX_MS", "5")
    monkeypatch.setenv("ADMIN_TOKEN", "admin")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.activation_secret == "abc"
    assert settings.require_signature is True
    assert settings.signature_window_seconds == 60
    assert settings.activation_delay_max_ms == 5
    assert settings.admin_token == "admin"
    assert settings.log_level == "DEBUG"
    assert "admin" not in repr(settings)


def test_bad_integer_raises(monkeypatch):
    monkeypatch.setenv("SIGNATURE_WINDOW_SECONDS", "five")
    with pytest.raises(RuntimeError):
        Settings.from_env()


def test_inverted_delay_range_raises():
    with pytest.raises(RuntimeError):
        Settings(activation_delay_min_ms=300, activation_delay_max_ms=100)


def test_default_engine_uses_database_url_from_dotenv(monkeypatch, tmp_path):
    path = tmp_path / "from-dotenv.db"
    url = f"sqlite+aiosqlite:///{path}"
    monkeypatch.setattr(
        "licensegate.config.load_dotenv", lambda: monkeypatch.setenv("DATABASE_URL", url)
    )
    from licensegate.db import session

    try:
        importlib.reload(session)
        assert session.DATABASE_URL == url
        assert session.engine.url.database == str(path)
    finally:
        monkeypatch.undo()
        importlib.reload(session)
