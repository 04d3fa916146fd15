"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Storage: "mongo" for MongoDB, "memory" for an in-process store
    storage_backend: Literal["mongo", "memory"] = "mongo"

    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "zhide_db"

    # DeepSeek AI (OpenAI-compatible)
    ai_api_key: str = ""
    ai_base_url: str = "https://api.deepseek.com/v1"
    ai_model: str = "deepseek-chat"
    ai_timeout_seconds: float = 30.0

    # Matching
    match_top_n: int = 5
    job_description_max_chars: int = 300

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # App
    seed_demo_data: bool = True
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    @property
    def ai_configured(self) -> bool:
        """True when an API key for the AI model is set."""
        return bool(self.ai_api_key) and self.ai_api_key != "your_api_key_here"

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
