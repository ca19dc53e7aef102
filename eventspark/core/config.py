"""
Client configuration using pydantic-settings.
All config is loaded from environment variables with sensible defaults.
"""

from pathlib import Path
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "EventSpark Client"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Ticketing API
    API_URL: str = "http://localhost:5000"
    REQUEST_TIMEOUT: float = 10.0

    # Dashboards re-pull ground truth on this interval
    REFRESH_INTERVAL_SECONDS: float = 30.0

    # Session token (the only durable client state)
    TOKEN_PATH: Path = Path.home() / ".eventspark" / "token"

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }


@lru_cache()
def get_settings() -> Settings:
    return Settings()
