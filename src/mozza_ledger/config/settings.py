"""Configuration settings for the Mozza ledger."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Flat settings read from environment variables or a ``.env`` file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Store selection
    mode: Literal["sandbox", "live"] = Field(
        default="sandbox", validation_alias="MOZZA_MODE"
    )

    # Remote document store (live mode)
    store_url: str = Field(
        default="http://localhost:8080", validation_alias="MOZZA_STORE_URL"
    )
    store_token: SecretStr | None = Field(
        default=None, validation_alias="MOZZA_STORE_TOKEN"
    )
    store_timeout: float = Field(default=30.0, validation_alias="MOZZA_STORE_TIMEOUT")
    store_max_retries: int = Field(default=3, validation_alias="MOZZA_STORE_MAX_RETRIES")

    # Local key-value store (sandbox mode)
    sandbox_path: Path = Field(
        default=Path("mozza_sandbox.json"), validation_alias="MOZZA_SANDBOX_PATH"
    )

    # Name recorded as ``closed_by`` on shifts
    operator: str = Field(default="Unknown", validation_alias="MOZZA_OPERATOR")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
