from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional
from functools import lru_cache
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App Settings
    APP_NAME: str = "PromoDesk"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - accepts JSON string, comma-separated, or list
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:9002",
    ]

    # Storage
    STORAGE_BACKEND: str = "database"  # "database" or "memory"
    DATABASE_URL: str = "sqlite+aiosqlite:///./promodesk.db"
    SEED_DEMO_DATA: bool = True  # Fall back to demo campaigns on empty/corrupt store

    # Campaign defaults
    DEFAULT_DISTRIBUTOR: str = "Great Deals Ecommerce Corp"

    # Trade letter extraction (Gemini generateContent REST API)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_API_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    EXTRACTION_TIMEOUT_SECONDS: float = 60.0
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024  # 10 MB

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('STORAGE_BACKEND')
    @classmethod
    def check_storage_backend(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in ("database", "memory"):
            raise ValueError("STORAGE_BACKEND must be 'database' or 'memory'")
        return v

    @property
    def extraction_enabled(self) -> bool:
        return bool(self.GEMINI_API_KEY)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
