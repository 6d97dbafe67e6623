"""Validator defaults using pydantic-settings.

Loads configuration from environment variables (``SCHEMAGUARD_*``) with
.env file support. Explicit ``ValidatorOptions`` always win over these.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide validator defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SCHEMAGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Failure policy
    throws_exception: bool = Field(
        default=True,
        description="Raise the built failure object instead of returning False",
    )
    custom_attributes_prefix: str = Field(
        default="$",
        min_length=1,
        description="Prefix marking reserved schema control keys",
    )
    default_failure_title: str = Field(
        default="Validation Error",
        description="Title used when neither the engine nor a directive provides one",
    )
    default_failure_body: str = Field(
        default="Validation Error",
        description="Body used when neither the engine nor a directive provides one",
    )

    # Matching policy
    strict_key_mode: Literal["count", "set"] = Field(
        default="count",
        description="How $strict compares key sets: cardinality only, or set equality",
    )
    numeric_strings: bool = Field(
        default=True,
        description="Accept strings that parse as non-NaN numbers for the number type",
    )
    max_depth: int = Field(
        default=64,
        ge=1,
        le=500,
        description="Maximum nesting depth walked before failing",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
