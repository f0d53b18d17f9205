"""Tests for configuration settings."""

from pathlib import Path

import pytest

from mozza_ledger.config.settings import Settings, get_settings
from mozza_ledger.store import LocalLedgerStore, RemoteLedgerStore, create_store


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_loads_from_env():
    """Test that settings loads from environment variables."""
    settings = get_settings()

    assert settings.mode == "sandbox"
    assert settings.store_url == "http://store.test"
    assert settings.operator == "Test Chef"


def test_settings_has_defaults(monkeypatch):
    """Test that settings has sensible defaults."""
    for name in ("MOZZA_STORE_URL", "MOZZA_OPERATOR", "MOZZA_SANDBOX_PATH", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.store_url == "http://localhost:8080"
    assert settings.store_timeout == 30.0
    assert settings.store_max_retries == 3
    assert settings.store_token is None
    assert settings.sandbox_path == Path("mozza_sandbox.json")
    assert settings.operator == "Unknown"
    assert settings.log_level == "INFO"


def test_unknown_mode_is_rejected(monkeypatch):
    """Test that only sandbox and live modes are accepted."""
    monkeypatch.setenv("MOZZA_MODE", "staging")

    with pytest.raises(ValueError):
        Settings(_env_file=None)


def test_settings_are_cached():
    """Test that get_settings returns cached instance."""
    settings1 = get_settings()
    settings2 = get_settings()

    assert settings1 is settings2


def test_sandbox_mode_builds_local_store(monkeypatch, tmp_path):
    """Test store selection for sandbox mode."""
    monkeypatch.setenv("MOZZA_SANDBOX_PATH", str(tmp_path / "ledger.json"))

    store = create_store(Settings(_env_file=None))

    assert isinstance(store, LocalLedgerStore)
    assert not store.supports_atomic_batch


def test_live_mode_builds_remote_store(monkeypatch):
    """Test store selection for live mode."""
    monkeypatch.setenv("MOZZA_MODE", "live")
    monkeypatch.setenv("MOZZA_STORE_URL", "http://ledger.example/api/")
    monkeypatch.setenv("MOZZA_STORE_TOKEN", "tok")

    store = create_store(Settings(_env_file=None))

    assert isinstance(store, RemoteLedgerStore)
    assert store.supports_atomic_batch
    assert store.base_url == "http://ledger.example/api"
    assert store._get_headers()["Authorization"] == "Bearer tok"
