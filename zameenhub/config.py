"""
Configuration management using Pydantic settings.
Handles database URL, JWT secrets, media storage and environment variables.
"""

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings
from typing import List
from functools import lru_cache
import os

ENVIRONMENTS = ("development", "testing", "staging", "production")
DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"


class Settings(BaseSettings):
    """
    ZameenHub settings, read from environment variables or a .env file.

    Names are case-insensitive: DATABASE_URL fills ``database_url``.
    """

    # Application configuration
    app_name: str = "ZameenHub API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/zameenhub"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30

    # Tokens
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    jwt_refresh_token_expire_days: int = 7
    approval_watch_token_expire_hours: int = 72

    # Media storage for listing images
    upload_dir: str = "./uploads"
    media_url_prefix: str = "/media"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    allowed_file_types: List[str] = ["image/jpeg", "image/png", "image/webp"]
    max_images_per_upload: int = 10

    # API configuration
    api_v1_prefix: str = "/api/v1"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Pagination defaults
    default_page_size: int = 20
    max_page_size: int = 100

    # Approval notifications
    notification_queue_size: int = 100

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure an async driver is used."""
        if not v:
            raise ValueError("DATABASE_URL is required")
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def validate_jwt_secret_key(cls, v):
        """Validate JWT secret key strength."""
        if not v:
            raise ValueError("JWT_SECRET_KEY is required")
        if len(v) < 32 and v != DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        if v not in ENVIRONMENTS:
            raise ValueError(f"Environment must be one of: {', '.join(ENVIRONMENTS)}")
        return v

    @field_validator("upload_dir", mode="before")
    @classmethod
    def create_upload_directory(cls, v):
        """Ensure the media directory exists."""
        if v and not os.path.exists(v):
            os.makedirs(v, exist_ok=True)
        return v

    @field_validator("media_url_prefix")
    @classmethod
    def validate_media_url_prefix(cls, v):
        if not v.startswith("/") and not v.startswith("http"):
            v = "/" + v
        return v.rstrip("/")

    @model_validator(mode="after")
    def check_production_secrets(self):
        if self.environment == "production" and self.jwt_secret_key == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET_KEY must be set in production")
        if self.default_page_size > self.max_page_size:
            raise ValueError("DEFAULT_PAGE_SIZE cannot exceed MAX_PAGE_SIZE")
        return self

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Settings for code running outside an application (CLI, defaults)."""
    return Settings()
