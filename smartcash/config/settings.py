"""
Configuration Management for SmartCash

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The only behavior driven by the environment is the choice between remote
(Supabase) and local storage: if the Supabase URL and key are present we go
remote, otherwise the app runs in offline/demo mode.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Supabase (auth + table storage) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Supabase project URL"
    )
    anon_key: str = Field(
        ...,
        description="Supabase anonymous (public) API key"
    )
    table_name: str = Field(
        default="transactions",
        description="Name of the transactions table"
    )
    read_attempts: int = Field(
        default=1,
        ge=1,
        le=5,
        description="Attempts for list reads (1 = attempt once, no retry)"
    )

    @field_validator("url", "anon_key")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """An empty variable means 'not configured', not 'empty key'."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )
    max_prompt_transactions: int = Field(
        default=50,
        ge=1,
        le=500,
        description="How many transactions are summarized into the prompt"
    )
    insight_fallback: Literal["empty", "placeholder"] = Field(
        default="empty",
        description=(
            "What to return when insights cannot be generated: an empty list "
            "or a single low-severity placeholder insight"
        )
    )

    @field_validator("api_key")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Admin gate
    admin_passphrase: Optional[str] = Field(
        default=None,
        description=(
            "Shared passphrase that unlocks the all-users view. "
            "Compared client-side, case-insensitively. Unset disables admin mode."
        )
    )

    # Local fallback storage
    local_storage_path: str = Field(
        default=".smartcash/local_storage.json",
        description="File holding the local key-value slots"
    )
    seed_demo_data: bool = Field(
        default=True,
        description="Populate local storage with demo transactions on first use"
    )

    # Delete policy
    rollback_failed_deletes: bool = Field(
        default=False,
        description=(
            "Restore a transaction in the list when its remote delete fails. "
            "By default the local removal is kept and the error is reported."
        )
    )

    # Entry form thresholds
    max_transaction_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Amounts above this are flagged for review"
    )
    future_date_tolerance_days: int = Field(
        default=365,
        ge=0,
        description="How many days in the future a transaction date can be"
    )

    @property
    def admin_enabled(self) -> bool:
        return bool(self.admin_passphrase and self.admin_passphrase.strip())


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so a missing Supabase or Gemini
    # configuration only affects the feature that needs it.

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def remote_storage_configured(settings: Optional[Settings] = None) -> bool:
    """True when Supabase URL and key are both present."""
    settings = settings or get_settings()
    try:
        _ = settings.supabase
    except ValidationError:
        return False
    return True


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks and the settings page.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.supabase
        results["supabase"] = True
    except Exception as e:
        results["supabase"] = False
        results["supabase_error"] = str(e)

    try:
        _ = settings.gemini
        results["gemini"] = True
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
