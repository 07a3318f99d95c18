"""Application configuration loaded from environment variables."""
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # API configuration
    api_host: str = "127.0.0.1"
    api_port: int = 8082

    # Start the tick and housekeeping loops with the app
    monitor_autostart: bool = True

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    class Config:
        env_prefix = "DASHBOARD_"


@lru_cache
def get_settings() -> Settings:
    return Settings()
