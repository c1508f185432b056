"""
Application Configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Resova Analytics Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS / hosts
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    ALLOWED_HOSTS: List[str] = ["*"]

    # Resova API
    RESOVA_API_URL: str = "https://api.resova.io/v1"
    RESOVA_API_KEY: Optional[str] = None
    RESOVA_TIMEOUT_SECONDS: float = 30.0
    RESOVA_PAGE_SIZE: int = 100
    RESOVA_MAX_PAGES: int = 20

    # Analytics
    TREND_DAYS: int = 7

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
