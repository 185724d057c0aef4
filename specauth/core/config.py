"""
Configuration using Pydantic Settings.
"""

from functools import lru_cache
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SecuritySettings(BaseSettings):
    """Security middleware configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPECAUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    helpers_path: str = Field(
        default="api/helpers",
        description="Directory searched for helper modules (passwordCheck etc.)",
    )
    debug: bool = Field(default=False)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="json or text")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        allowed = {"json", "text"}
        if v not in allowed:
            raise ValueError(f"log_format must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> SecuritySettings:
    """Get cached settings instance."""
    return SecuritySettings()
