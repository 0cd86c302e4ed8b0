"""Application configuration via pydantic-settings.

Loads all settings from environment variables with sensible defaults.
A global `settings` singleton is available for import throughout the app.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""

    # Storage
    STORE_BACKEND: Literal["supabase", "memory"] = "supabase"
    SEED_DATA_PATH: str = "data/candidates.json"

    # Auth (static shared secret sent as x-api-key)
    API_KEY: str = ""

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Candidate engine
    LIST_CACHE_TTL_SECONDS: float = 300.0
    UPDATE_CONFLICT_RETRIES: int = 3

    # Logging
    LOG_LEVEL: str = "INFO"


settings = Settings()
