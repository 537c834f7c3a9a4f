"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, AnyHttpUrl, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    gemini_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices(
            "GEMINI_API_KEY",
            "VITE_GEMINI_API_KEY",
            "gemini_api_key",
        ),
    )
    gemini_base_url: AnyHttpUrl = Field(
        default_factory=lambda: AnyHttpUrl(
            "https://generativelanguage.googleapis.com/v1beta"
        ),
        validation_alias=AliasChoices("GEMINI_BASE_URL", "gemini_base_url"),
    )
    default_model: str = Field(
        default="gemini-2.0-flash-exp",
        validation_alias=AliasChoices("TTS_DEFAULT_MODEL", "default_model"),
    )
    request_timeout: float = Field(
        default=120.0,
        validation_alias=AliasChoices("TTS_REQUEST_TIMEOUT", "request_timeout"),
        ge=1,
    )
    default_max_chars: int = Field(
        default=1000,
        ge=1,
        validation_alias=AliasChoices("TTS_DEFAULT_MAX_CHARS", "default_max_chars"),
    )
    sample_rate: int = Field(
        default=24000,
        ge=8000,
        le=48000,
        validation_alias=AliasChoices("TTS_SAMPLE_RATE", "sample_rate"),
    )
    storage_dir: Path = Field(
        default_factory=lambda: Path("data/storage"),
        validation_alias=AliasChoices("TTS_STORAGE_DIR", "storage_dir"),
    )
    storage_capacity_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1,
        validation_alias=AliasChoices(
            "TTS_STORAGE_CAPACITY_BYTES",
            "storage_capacity_bytes",
        ),
    )
    validator_url: Optional[AnyHttpUrl] = Field(
        default_factory=lambda: AnyHttpUrl("http://localhost:8787/api/validate-audio"),
        validation_alias=AliasChoices("TTS_VALIDATOR_URL", "validator_url"),
    )
    validator_timeout: float = Field(
        default=60.0,
        ge=1,
        validation_alias=AliasChoices("TTS_VALIDATOR_TIMEOUT", "validator_timeout"),
    )
    host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("TTS_HOST", "host"),
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("TTS_PORT", "port"),
    )

    @property
    def has_api_key(self) -> bool:
        if self.gemini_api_key is None:
            return False
        return bool(self.gemini_api_key.get_secret_value().strip())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["Settings", "get_settings"]
