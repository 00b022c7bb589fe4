import pytest
from pydantic import ValidationError

from ledger.config import LedgerSettings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("LEDGER_PRIMARY_ACCOUNT", raising=False)
    settings = LedgerSettings(_env_file=None)

    assert settings.primary_account == "BNP"
    assert settings.aggregate_account == "Revolut"
    assert settings.seed_path.name == "seed.json"
    assert settings.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LEDGER_PRIMARY_ACCOUNT", "Boursorama")
    monkeypatch.setenv("LEDGER_LOG_LEVEL", "debug")

    settings = LedgerSettings(_env_file=None)

    assert settings.primary_account == "Boursorama"
    assert settings.log_level == "DEBUG"


def test_invalid_values_rejected(monkeypatch):
    monkeypatch.setenv("LEDGER_LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        LedgerSettings(_env_file=None)


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()
