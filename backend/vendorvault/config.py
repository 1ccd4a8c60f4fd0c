"""
Application configuration loaded from environment variables.
"""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # MongoDB
    mongo_uri: str = "mongodb://mongodb:27017"

    # JWT Configuration
    jwt_secret_key: str = "CHANGE_ME_IN_PRODUCTION_USE_STRONG_SECRET"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24

    # Password reset
    password_min_length: int = 8
    password_reset_expire_minutes: int = 60

    # Reference data APIs
    pokeapi_url: str = "https://pokeapi.co/api/v2"
    pokemontcg_url: str = "https://api.pokemontcg.io/v2"
    pokemontcg_api_key: str | None = None
    http_timeout_seconds: float = 30.0
    lookup_debounce_seconds: float = 0.5

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
