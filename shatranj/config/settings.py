"""
Application settings with environment-based configuration.

Priority (highest to lowest):
1. Environment variables (from .env or system)
2. Pydantic defaults
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    All settings can be overridden with environment variables of the same name.

    The secret used to sign session tokens should always come from the environment outside development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Shatranj"
    LOG_LEVEL: str = Field(default="INFO")

    # Persisted session records
    DATABASE_URL: str = Field(default="sqlite:///shatranj.db")
    DATABASE_ECHO: bool = Field(default=False)

    # Session tokens
    TOKEN_SECRET_KEY: str = Field(default="change-me-in-production", min_length=8)
    TOKEN_ALGORITHM: str = Field(default="HS256")
    SESSION_VALIDITY_HOURS: int = Field(default=24, ge=1)

    # Mirrors the attributes of the login cookie
    COOKIE_PATH: str = Field(default="/")
    COOKIE_SAME_SITE: str = Field(default="strict")

    # Roster (fixed pair of seated players)
    WHITE_USERNAME: str = Field(default="altstream")
    WHITE_ADDRESS: str = Field(default="0x246fd79365CA79BEB812B5635E8bE38453e2BF1C")
    BLACK_USERNAME: str = Field(default="rehesamay")
    BLACK_ADDRESS: str = Field(default="0xC89337a02D3A3b913147aACF8F5b06Ad046663A9")

    @field_validator("COOKIE_SAME_SITE")
    @classmethod
    def validate_same_site(cls, value: str) -> str:
        value = value.lower()
        if value not in {"strict", "lax", "none"}:
            raise ValueError(f"COOKIE_SAME_SITE must be strict, lax or none. Got {value!r}")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown LOG_LEVEL {value!r}")
        return value

    @property
    def session_validity(self) -> timedelta:
        return timedelta(hours=self.SESSION_VALIDITY_HOURS)


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
