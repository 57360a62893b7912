"""
Configuration Management for FinSight

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Tunable constants (default budget limit, trend window, debounce timing)
live next to the external service settings so there is one place to look.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


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
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class StorageSettings(BaseSettings):
    """Local key/value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINSIGHT_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: str = Field(
        default=".finsight",
        description="Directory holding the persisted JSON records"
    )
    audit_log_name: str = Field(
        default="audit.jsonl",
        description="File name of the append-only audit log inside data_dir"
    )

    @field_validator("data_dir")
    @classmethod
    def validate_data_dir(cls, v: str) -> str:
        """Reject paths that point at an existing regular file."""
        path = Path(v)
        if path.exists() and not path.is_dir():
            raise ValueError(f"Storage data_dir {v} exists and is not a directory")
        return v

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def audit_log_path(self) -> Path:
        return self.data_path / self.audit_log_name


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINSIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Budgets
    default_budget_limit: float = Field(
        default=500.0,
        ge=0.0,
        description="Monthly limit seeded for every non-income category"
    )
    budget_warning_percentage: float = Field(
        default=80.0,
        ge=0.0,
        le=100.0,
        description="Budget usage at which a category is flagged as near its limit"
    )

    # Dashboard
    trend_window_days: int = Field(
        default=14,
        ge=1,
        le=366,
        description="Number of most recent active days shown in the trend chart"
    )

    # AI assistance
    suggestion_quiet_period_ms: int = Field(
        default=800,
        ge=0,
        description="How long input must be stable before a category suggestion is requested"
    )
    suggestion_min_length: int = Field(
        default=3,
        ge=0,
        description="Input must be longer than this to request a category suggestion"
    )
    ai_fill_min_length: int = Field(
        default=3,
        ge=0,
        description="Minimum input length for natural language AI fill"
    )
    forecast_history_limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="How many recent transactions are sent with a forecast request"
    )

    # Validation thresholds
    future_date_tolerance_days: int = Field(
        default=7,
        description="How many days in the future a transaction date can be without a warning"
    )

    @property
    def suggestion_quiet_period_seconds(self) -> float:
        """Get the suggestion quiet period in seconds."""
        return self.suggestion_quiet_period_ms / 1000


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

    # Note: These are loaded lazily to allow partial configuration
    # (the tracker works without a Gemini key).

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    `<name>_error` entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("gemini", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
