"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    indoorsight_env: str = "development"
    indoorsight_log_level: str = "debug"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Wall rebuild scheduling
    rebuild_budget_ms: float = 100.0
    rebuild_retry_delay_ms: float = 500.0

    # Labels
    label_cache_size: int = 4096
    label_font_size: int = 12

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
