"""
Tradelog Configuration

Settings for the advice service and the application shell, loaded from
environment variables with pydantic-settings. Settings objects are built once
and passed into the components that need them.
"""

from functools import lru_cache
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AdvisorSettings(BaseSettings):
    """
    Configuration for the AI advice generator.

    The OpenAI key is optional: without it the advisor runs purely on
    rule-based advice.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRADELOG_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    OPENAI_API_KEY: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("TRADELOG_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="API key for the OpenAI chat completions service.",
    )
    OPENAI_MODEL: str = Field(
        default="gpt-4o",
        description="Chat model used to generate advice.",
    )
    ADVICE_TEMPERATURE: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for advice generation.",
    )
    ADVICE_MAX_TOKENS: int = Field(
        default=2000,
        ge=100,
        le=8000,
        description="Maximum tokens in the advice reply.",
    )
    ADVICE_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Upper bound on a single advice request.",
    )

    @field_validator("OPENAI_API_KEY", mode="before")
    @classmethod
    def blank_key_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_configured(self) -> bool:
        """True when an API key is available for external advice."""
        return self.OPENAI_API_KEY is not None


class AppSettings(BaseSettings):
    """Application shell configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRADELOG_",
        case_sensitive=False,
        extra="ignore",
    )

    SERVICE_NAME: str = Field(default="tradelog-api")
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development"
    )
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    LOG_JSON: bool = Field(
        default=False,
        description="Emit JSON structured logs instead of console format.",
    )
    TIMEZONE: Optional[str] = Field(
        default=None,
        description="IANA timezone used to bucket trades by hour and weekday.",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def upper_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator("TIMEZONE")
    @classmethod
    def known_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def tzinfo(self) -> Optional[ZoneInfo]:
        return ZoneInfo(self.TIMEZONE) if self.TIMEZONE else None


@lru_cache()
def get_advisor_settings() -> AdvisorSettings:
    """Get cached advisor settings instance."""
    return AdvisorSettings()


@lru_cache()
def get_app_settings() -> AppSettings:
    """Get cached application settings instance."""
    return AppSettings()
