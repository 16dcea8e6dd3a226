"""
Fish Stocking Registry Configuration
Core settings for the fish stocking lifecycle service
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path


class Settings(BaseSettings):
    """Application settings"""

    # Application Info
    APP_NAME: str = "Fish Stocking Registry API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database Configuration
    DATABASE_URL: str = "postgresql://fishstocking@localhost:5432/fishstocking"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Security
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS
    CORS_ORIGINS: list = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Path = Path("logs")
    LOG_FILE: str = "app.log"
    ERROR_LOG_FILE: str = "error.log"

    # Lifecycle defaults, used to seed the settings row
    DEFAULT_MIN_TIME_TILL_STOCKING: int = 1  # days
    DEFAULT_MAX_TIME_FOR_REGISTRATION: int = 10  # days

    # Water bodies larger than this (hectares) make a stocking mandatory
    MANDATORY_AREA_THRESHOLD: float = 50.0

    # Organization written into inspector snapshots
    INSPECTOR_ORGANIZATION: str = "AAD"

    # API Configuration
    API_V1_STR: str = "/api/v1"
    DOCS_URL: str = "/docs"
    OPENAPI_URL: str = "/openapi.json"

    # Email Settings (for notifications)
    NOTIFICATIONS_ENABLED: bool = True
    ADMIN_HOST: str = "http://localhost:8080"
    MAIL_SENDER: str = "noreply@fishstocking.local"
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Log levels are matched case-insensitively"""
        return v.upper()

    @field_validator("DEFAULT_MIN_TIME_TILL_STOCKING", "DEFAULT_MAX_TIME_FOR_REGISTRATION")
    @classmethod
    def non_negative_days(cls, v: int) -> int:
        if v < 0:
            raise ValueError("day counts must not be negative")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
