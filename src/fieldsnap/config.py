"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    device_bridge_url: str = "http://127.0.0.1:8765"
    platform: Literal["ios", "android"] = "android"
    os_major_version: int = 33
    photos_table: str = "photos"
    storage_bucket: str = "images"
    image_strategy: Literal["remote_url", "inline_base64"] = "remote_url"
    image_max_dimension: int = 1024
    image_quality: int = 80
    max_inline_bytes: int = 900_000
    location_watch_enabled: bool = False
    map_recency_hours: int | None = None
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
