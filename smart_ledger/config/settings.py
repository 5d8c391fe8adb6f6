"""
Configuration Management for Smart Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every tunable (model, timeouts, debounce window, storage location)
is visible in one place and validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model to use"
    )

    # Categorization is a one-word answer
    categorize_max_tokens: int = Field(
        default=20,
        ge=1,
        le=256,
        description="Maximum tokens for a category label"
    )
    categorize_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Temperature for categorization (lower = more deterministic)"
    )
    insight_max_tokens: int = Field(
        default=512,
        ge=64,
        le=8192,
        description="Maximum tokens for the insight text"
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Upper bound on a single model call"
    )


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path(".ledger_data"),
        description="Directory holding one JSON file per stored key"
    )
    transactions_key: str = Field(
        default="transactions",
        min_length=1,
        description="Key under which the whole ledger is stored"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a single write before giving up"
    )

    @field_validator("transactions_key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Keys become file names, so path separators are not allowed."""
        if "/" in v or "\\" in v or v.startswith("."):
            raise ValueError(f"Invalid storage key: {v!r}")
        return v


class InsightSettings(BaseSettings):
    """AI insight scheduling configuration."""

    model_config = SettingsConfigDict(
        env_prefix="INSIGHTS_",
        extra="ignore"
    )

    debounce_seconds: float = Field(
        default=2.0,
        ge=0.0,
        le=60.0,
        description="Quiet period after the last ledger change before fetching"
    )
    history_window: int = Field(
        default=20,
        ge=1,
        le=200,
        description="How many recent transactions are sent for analysis"
    )


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
    log_level: str = Field(
        default="INFO",
        description="Standard library log level for structured logs"
    )

    # Display
    currency_symbol: str = Field(
        default="S$",
        description="Symbol shown next to every amount"
    )
    daily_window: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Number of recent transactions in the cash-flow chart"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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

    # Loaded lazily so the ledger works without a Gemini key

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def insights(self) -> InsightSettings:
        return InsightSettings()

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

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries describing failures.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("gemini", "storage", "insights", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
