from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str
    storage_backend: Literal["postgres", "memory"] = "postgres"
    cors_allow_origins: str = "*"

    rate_limit_max_requests: int = 100
    rate_limit_window_seconds: float = 60.0
    stats_top_countries_limit: int = 5
    stats_recent_activity_limit: int = 10
    strict_group_type: bool = False
    visits_default_limit: int = 100
    visits_max_limit: int = 1000

    local_channel_url: str = "https://chat.whatsapp.com/I9utNeip977H5k8oGW5KCy"
    diaspora_channel_url: str = "https://chat.whatsapp.com/CVWXWSeSfuKFj5UFmj6ESL"

    ops_console_enabled: bool = False
    ops_event_buffer_size: int = 500

    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout_seconds: int = 30
    db_echo_sql: bool = False

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("DATABASE_URL must be provided")
        return value

    @field_validator("rate_limit_max_requests", "stats_top_countries_limit", "stats_recent_activity_limit")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    def cors_allow_origin_list(self) -> list[str]:
        return [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]

    def channel_urls(self) -> dict[str, str]:
        return {"local": self.local_channel_url, "diaspora": self.diaspora_channel_url}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
