from __future__ import annotations

import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field("sqlite+aiosqlite:///./life_dashboard.db", alias="DATABASE_URL")
    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    jwt_expires_days: int = Field(30, alias="JWT_EXPIRES_DAYS")

    app_timezone: str = Field("UTC", alias="APP_TIMEZONE")
    currency: str = Field("PKR", alias="CURRENCY")

    gemini_api_key: str | None = Field(None, alias="GEMINI_API_KEY")
    gemini_model: str = Field("gemini-2.5-flash", alias="GEMINI_MODEL")

    credential_encryption_key: str | None = Field(None, alias="CREDENTIAL_ENCRYPTION_KEY")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def timezone(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.app_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            return ZoneInfo("UTC")


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None


# For local dev convenience only.
if os.getenv("BACKEND_DEBUG_SETTINGS"):
    print(get_settings().model_dump(exclude={"jwt_secret", "gemini_api_key", "credential_encryption_key"}))
