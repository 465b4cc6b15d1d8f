"""Configuration management for the governance posture assessor.

This module handles loading and validating configuration from environment
variables with sensible defaults.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local runs. Trend weights and
    tolerance are deliberately not configurable; they live as constants in
    services.delta_service so verdicts stay reproducible across runs.
    """

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="LOG_LEVEL",
    )
    environment: str = Field(
        default="development",
        description="Environment name (development, staging, production)",
        validation_alias=AliasChoices("ENVIRONMENT", "ENV"),
    )

    # Classification
    impact_rules_path: Optional[str] = Field(
        default=None,
        description="Path to a JSON impact rule table file (built-in tables when unset)",
        validation_alias=AliasChoices("IMPACT_RULES_PATH", "IMPACT_RULES_FILE"),
    )

    # Snapshot persistence
    snapshot_db_path: str = Field(
        default="assessment_snapshots.db",
        description="Path to the snapshot SQLite database",
        validation_alias=AliasChoices("SNAPSHOT_DB_PATH", "DATABASE_PATH"),
    )

    # Reporting thresholds
    exemption_expiry_warning_days: int = Field(
        default=30,
        ge=0,
        description="Exemptions expiring within this many days are flagged",
        validation_alias="EXEMPTION_EXPIRY_WARNING_DAYS",
    )
    non_compliance_warn_ratio: float = Field(
        default=0.05,
        ge=0.0,
        le=1.0,
        description="Non-compliant resource share below which the compliance test warns instead of failing",
        validation_alias="NON_COMPLIANCE_WARN_RATIO",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """
    Get application settings.

    Loads settings from environment variables and .env file.

    Returns:
        Settings instance with all configuration values
    """
    return Settings()


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def settings() -> Settings:
    """
    Get the global settings instance.

    Creates the settings instance on first call and caches it.

    Returns:
        Global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings
