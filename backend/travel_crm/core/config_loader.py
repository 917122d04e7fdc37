# backend/travel_crm/core/config_loader.py

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # LLM
    OPENAI_API_KEY: str = ""
    CHAT_MODEL: str = "gpt-4o-mini"
    IMAGE_MODEL: str = "dall-e-3"
    IMAGE_SIZE: str = "1024x1024"

    # Itinerary generation
    GENERATION_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    GENERATION_MAX_TOKENS: int = 6000
    GENERATION_MAX_TOKENS_CAP: int = 10000
    GENERATION_RETRY_DELAY: float = 0.5
    DAY_COUNT_TOLERANCE: int = Field(default=1, ge=0)
    PHOTO_MAPPING_PATH: Optional[str] = None

    # Storage + logs
    DB_PATH: str = "data.sqlite3"
    LOG_DIR: Optional[str] = None
    LOG_LEVEL: str = "DEBUG"

    # Staff auth
    JWT_SECRET_KEY: str = "supersecret"
    access_token_expire_minutes: int = 30
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    # SMTP
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM: Optional[str] = None
    SMTP_TIMEOUT: int = 30

    # Public links + branding
    PUBLIC_BASE_URL: str = "https://admin.lankalux.com"
    BRAND_NAME: str = "LankaLux"
    BRAND_SITE_URL: str = "https://lankalux.com"
    CONTACT_WHATSAPP: str = ""

    CORS_ALLOW_ORIGINS: str = "*"
    environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @property
    def smtp_password(self) -> Optional[str]:
        return self.SMTP_PASS or self.SMTP_PASSWORD

    @property
    def smtp_sender(self) -> Optional[str]:
        return self.SMTP_FROM or self.SMTP_USER

    @property
    def cors_origins(self) -> list:
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]


settings = Settings()
