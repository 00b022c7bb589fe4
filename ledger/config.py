"""
Configuration for the pocket ledger.

Uses pydantic-settings so every value can come from the environment
(``LEDGER_*``) or a local ``.env`` file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ROOT_DIR = Path(__file__).resolve().parent.parent


class LedgerSettings(BaseSettings):
    """Where state lives and which accounts play which role."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    state_path: Path = Field(
        default=ROOT_DIR / "data" / "state.json",
        description="JSON file holding the persisted snapshot",
    )
    seed_path: Path = Field(
        default=ROOT_DIR / "data" / "seed.json",
        description="Default data used when no state has been saved yet",
    )
    primary_account: str = Field(
        default="BNP",
        description="Account that receives income and pays the fixed charges",
    )
    aggregate_account: str = Field(
        default="Revolut",
        description="Account whose balance is the sum of the pockets",
    )
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("primary_account", "aggregate_account")
    @classmethod
    def non_empty_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Account name cannot be empty")
        return v.strip()


@lru_cache()
def get_settings() -> LedgerSettings:
    """
    Get settings (cached).

    Call get_settings.cache_clear() to reload after changing the environment.
    """
    return LedgerSettings()
