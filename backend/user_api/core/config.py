"""Application configuration and settings management."""
from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".." / ".env"),
        env_file_encoding="utf-8",
        env_prefix="USER_API_",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = "User API"
    environment: Literal["development", "test", "production"] = "development"
    api_prefix: str = "/v1"
    log_level: str = "INFO"

    # Security
    secret_key: str = "change-me"  # development placeholder only
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    allowed_origins: List[str] = ["*"]

    # Database
    mongodb_url: str | None = None
    mongodb_database: str = "user_api"
    mongodb_collection: str = "users"
    mongodb_timeout_ms: int = 5000
    skip_mongodb: bool = False

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def is_strict(self) -> bool:
        """Production-like environments treat storage failures as fatal."""

        return self.environment == "production"

    @property
    def uses_default_secret(self) -> bool:
        return self.secret_key == "change-me"


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings instance."""

    return Settings()
