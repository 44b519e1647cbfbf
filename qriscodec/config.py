"""Application configuration utilities."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Root logger level")
    json_logs: bool = Field(default=True, description="Enable JSON formatted logs")


class Settings(BaseSettings):
    """Central settings for the codec and its HTTP surface, read from the environment."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="qriscodec")
    environment: Literal["development", "staging", "production"] = Field(default="development")
    api_key: str = Field(default="dev-secret-key")
    max_depth: int = Field(
        default=10,
        ge=1,
        le=32,
        validation_alias=AliasChoices("QRISCODEC_MAX_DEPTH", "MAX_DEPTH"),
        description="Deepest composite nesting accepted by the decoder",
    )
    max_payload_length: int = Field(default=4096, ge=8, description="Longest payload string accepted over HTTP")
    render_qr: bool = Field(default=True, description="Render a PNG for dynamic payloads unless the request opts out")
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return memoized application settings."""

    return Settings()


settings = get_settings()
