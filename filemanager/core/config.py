# filemanager/core/config.py
from __future__ import annotations
from pathlib import Path
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Core
    CONFIG_PATH: str = Field("data/config.json")

    # AI gateway (Gemini)
    GEMINI_API_KEY: Optional[str] = None
    AI_MODEL: str = Field("gemini-1.5-flash")
    AI_BASE_URL: str = Field("https://generativelanguage.googleapis.com")
    AI_TIMEOUT_SEC: float = Field(30.0, gt=0)

    # HTTP
    HOST: str = Field("127.0.0.1")
    PORT: int = Field(3000)
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])
    LOG_LEVEL: str = Field("INFO")

    IDEMPOTENCY_CACHE_SIZE: int = Field(128, ge=1)

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator("CONFIG_PATH", mode="before")
    @classmethod
    def _normalize_path(cls, v: str) -> str:
        return str(Path(v).as_posix())

    @field_validator("GEMINI_API_KEY", mode="before")
    @classmethod
    def _blank_key(cls, v: Optional[str]) -> Optional[str]:
        return None if not v or not str(v).strip() else str(v).strip()

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    def require_api_key(self) -> str:
        """Gateway credential is mandatory for a real deployment."""
        if not self.GEMINI_API_KEY:
            raise RuntimeError("GEMINI_API_KEY is not set. The AI gateway cannot be reached without it.")
        return self.GEMINI_API_KEY


def ensure_directories(settings: Settings) -> None:
    Path(settings.CONFIG_PATH).parent.mkdir(parents=True, exist_ok=True)
