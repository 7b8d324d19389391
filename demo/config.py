from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    A .env file in the working directory is read as a fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    # Database Configuration - required, e.g. sqlite:///./messages.db
    DATABASE_URL: str

    # Echo every SQL statement through the sqlalchemy.engine logger
    DB_ECHO: bool = False

    # Logging Configuration
    LOG_LEVEL: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file more than once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
