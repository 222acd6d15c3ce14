"""Application configuration loaded from environment variables."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from voluntree.core.exceptions import InvalidConfigurationError

BASE_DIR = Path(__file__).resolve().parents[2]

PLACEHOLDER_SECRETS = {"change-me-access", "change-me-refresh", "change-me", ""}


class Settings(BaseSettings):
    APP_NAME: str = "Voluntree API"
    ENV: str = "development"

    DATABASE_URL: str = "sqlite:///./voluntree.db"
    AUTO_CREATE_TABLES: bool = False

    ACCESS_TOKEN_SECRET: str = "change-me-access"
    REFRESH_TOKEN_SECRET: str = "change-me-refresh"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRY: dt.timedelta = dt.timedelta(days=1)
    REFRESH_TOKEN_EXPIRY: dt.timedelta = dt.timedelta(days=10)
    ACCESS_COOKIE_NAME: str = "accessToken"
    REFRESH_COOKIE_NAME: str = "refreshToken"
    # When False, a password change leaves existing refresh tokens usable.
    REVOKE_SESSIONS_ON_PASSWORD_CHANGE: bool = False

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:4000"

    BLOB_BACKEND: str = "local"
    UPLOAD_TEMP_DIR: str = str(BASE_DIR / "public" / "temp")
    MEDIA_ROOT: str = str(BASE_DIR / "public" / "media")
    MEDIA_BASE_URL: str = "/media"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    MINIO_ENDPOINT: str = ""
    MINIO_ACCESS_KEY: str = ""
    MINIO_SECRET_KEY: str = ""
    MINIO_BUCKET: str = "voluntree-media"
    MINIO_SECURE: bool = True
    MINIO_PUBLIC_BASE_URL: str = ""

    model_config = SettingsConfigDict(env_file=str(BASE_DIR / ".env"), env_file_encoding="utf-8", extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() in {"prod", "production"}

    def validate_runtime_security(self) -> None:
        if not self.ACCESS_TOKEN_SECRET or not self.REFRESH_TOKEN_SECRET:
            raise InvalidConfigurationError("token_secret_missing", setting="ACCESS_TOKEN_SECRET/REFRESH_TOKEN_SECRET")
        if self.ACCESS_TOKEN_SECRET == self.REFRESH_TOKEN_SECRET:
            raise InvalidConfigurationError("token_secrets_must_differ", setting="REFRESH_TOKEN_SECRET")
        if self.is_production:
            for name in ("ACCESS_TOKEN_SECRET", "REFRESH_TOKEN_SECRET"):
                if getattr(self, name) in PLACEHOLDER_SECRETS:
                    raise InvalidConfigurationError("token_secret_placeholder", setting=name)
        if self.ACCESS_TOKEN_EXPIRY.total_seconds() <= 0 or self.REFRESH_TOKEN_EXPIRY.total_seconds() <= 0:
            raise InvalidConfigurationError("token_expiry_must_be_positive", setting="ACCESS_TOKEN_EXPIRY")
        if self.BLOB_BACKEND not in {"local", "minio"}:
            raise InvalidConfigurationError("unknown_blob_backend", setting="BLOB_BACKEND")


settings = Settings()
