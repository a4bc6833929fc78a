"""Application configuration."""

import os
from datetime import datetime
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    estimation_backend: Literal["supabase", "openai"] = "supabase"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-mini"
    estimation_timeout_seconds: float = 30.0
    storage_backend: Literal["file", "supabase", "memory"] = "file"
    storage_dir: str = ".food_logger"
    storage_table: str = "kv_store"
    low_confidence_threshold: int = 50
    timezone: str = "UTC"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_log_date(raw: str) -> str:
    """Validate a YYYY-MM-DD day string."""
    cleaned = raw.strip()
    try:
        datetime.strptime(cleaned, "%Y-%m-%d")
    except ValueError as exc:
        raise ValueError(f"Invalid date: {raw}") from exc
    if len(cleaned) != len("YYYY-MM-DD"):
        raise ValueError(f"Invalid date: {raw}")
    return cleaned


def parse_log_month(raw: str) -> str:
    """Validate a YYYY-MM month string."""
    cleaned = raw.strip()
    try:
        datetime.strptime(cleaned, "%Y-%m")
    except ValueError as exc:
        raise ValueError(f"Invalid month: {raw}") from exc
    if len(cleaned) != len("YYYY-MM"):
        raise ValueError(f"Invalid month: {raw}")
    return cleaned
