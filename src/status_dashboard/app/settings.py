"""Application settings."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[3]

StoreBackend = Literal["supabase", "memory"]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "status-dashboard"
    store_backend: StoreBackend = "supabase"
    supabase_url: str = ""
    supabase_anon_key: str = ""
    drn_table: str = "drn_status"
    ucm_table: str = "ucm_status"
    # None keeps requests open until the store answers.
    request_timeout_s: float | None = Field(default=None, gt=0)
    discard_stale_loads: bool = True
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="STATUS_DASHBOARD_",
        extra="ignore",
        env_file=(PROJECT_ROOT / ".env", PROJECT_ROOT / ".env.local"),
        env_file_encoding="utf-8",
    )

    def resolved_supabase_url(self) -> str:
        return (
            self.supabase_url
            or os.getenv("SUPABASE_URL", "")
            or os.getenv("VITE_SUPABASE_URL", "")
        )

    def resolved_supabase_anon_key(self) -> str:
        return (
            self.supabase_anon_key
            or os.getenv("SUPABASE_ANON_KEY", "")
            or os.getenv("VITE_SUPABASE_ANON_KEY", "")
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
