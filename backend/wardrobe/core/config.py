from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PUBLIC_BASE_URL = "http://localhost:8000"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field("sqlite+aiosqlite:///./wardrobe.db", alias="DATABASE_URL")
    app_storage_dir: Path = Field(Path("/data"), alias="APP_STORAGE_DIR")

    # Used to build absolute image URLs in API responses; stored paths stay relative.
    public_base_url: str = Field(DEFAULT_PUBLIC_BASE_URL, alias="PUBLIC_BASE_URL")

    cors_origins: str | None = Field(None, alias="CORS_ORIGINS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    max_upload_bytes: int = Field(10 * 1024 * 1024, alias="MAX_UPLOAD_BYTES", gt=0)
    audit_actor: str = Field("staff", alias="AUDIT_ACTOR")

    @field_validator("public_base_url", mode="before")
    @classmethod
    def _normalize_public_base_url(cls, v: object) -> object:
        if v is None:
            return DEFAULT_PUBLIC_BASE_URL
        if isinstance(v, str):
            url = v.strip().rstrip("/")
            return url or DEFAULT_PUBLIC_BASE_URL
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _normalize_cors_origins(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper() or "INFO"
        return v

    @field_validator("audit_actor", mode="before")
    @classmethod
    def _normalize_audit_actor(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip() or "staff"
        return v

    @property
    def upload_dir(self) -> Path:
        return self.app_storage_dir / "uploads"

    @property
    def identity_upload_dir(self) -> Path:
        return self.upload_dir / "identity"

    def public_url(self, rel_path: str | None) -> str | None:
        """Absolute URL for a stored `/uploads/...` path (None stays None)."""
        if not rel_path:
            return None
        return f"{self.public_base_url}/{rel_path.lstrip('/')}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
