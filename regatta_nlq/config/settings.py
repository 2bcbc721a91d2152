"""Typed settings for the regatta bot and CLIs, read from the environment or a local `.env`.

`ALLOW_DB_WIPE` defaults to off and is handed explicitly to the clear/restore helpers; nothing
reads it from the environment behind the caller's back.
"""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed configuration; field aliases are the variable names."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    database_url: str = Field(alias="DATABASE_URL")
    db_timezone: str = Field(default="UTC", alias="DB_TIMEZONE")
    db_pool_max_size: int = Field(default=10, ge=1, alias="DB_POOL_MAX_SIZE")
    allow_db_wipe: bool = Field(default=False, alias="ALLOW_DB_WIPE")

    # Chat front end
    telegram_bot_token: str | None = Field(default=None, alias="TELEGRAM_BOT_TOKEN")
    max_upload_bytes: int = Field(default=5_000_000, gt=0, alias="MAX_UPLOAD_BYTES")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Optional LLM classifier
    llm_enabled: bool = Field(default=False, alias="LLM_ENABLED")
    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_model: str = Field(default="gpt-4o-mini", alias="LLM_MODEL")
    llm_api_base: str = Field(default="https://api.openai.com/v1", alias="LLM_API_BASE")
    llm_timeout_s: float = Field(default=30.0, gt=0, alias="LLM_TIMEOUT_S")

    @field_validator("db_timezone")
    @classmethod
    def validate_db_timezone(cls, value: str) -> str:
        """Reject names that are not IANA zones (e.g. "Europe/Oslo" is fine, "CEST" is not)."""

        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"DB_TIMEZONE is not a known timezone: {value}") from exc
        return value

    @model_validator(mode="after")
    def validate_llm_config(self) -> Settings:
        if self.llm_enabled and not self.llm_api_key:
            raise ValueError("LLM_API_KEY is required when LLM_ENABLED=true")
        return self


def load_settings() -> Settings:
    """Build `Settings`, turning pydantic's validation error into a startup `RuntimeError`."""

    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc
