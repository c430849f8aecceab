"""
Application configuration management using Pydantic settings.

All validation thresholds and correction guards are tunable through environment
variables; the defaults mirror the limits the email pipeline ships with.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ThresholdSettings(BaseSettings):
    """Size ceilings, score floors and package completeness rules"""

    # Size ceilings
    max_html_size_kb: int = Field(100, ge=1, description="Design HTML ceiling in KiB")
    max_package_size_kb: int = Field(
        600, ge=1, description="Aggregate delivery package ceiling in KiB"
    )
    size_warning_ratio: float = Field(
        0.8, gt=0.0, le=1.0, description="Share of the package ceiling that triggers a recommendation"
    )

    # Score floors and ceilings
    min_quality_score: float = Field(70, ge=0, le=100)
    min_compatibility_score: float = Field(95, ge=0, le=100)
    min_accessibility_score: float = Field(80, ge=0, le=100)
    max_spam_score: float = Field(3, ge=0, le=10)

    # Delivery package completeness
    min_html_email_length: int = Field(
        100, ge=1, description="Shortest final HTML accepted as a complete email"
    )
    required_preview_types: list[str] = Field(
        default_factory=lambda: ["desktop", "mobile"]
    )
    required_documentation_sections: list[str] = Field(
        default_factory=lambda: [
            "readme",
            "implementation_guide",
            "testing_notes",
            "browser_support",
        ]
    )
    min_documentation_length: int = Field(50, ge=0)

    @field_validator("required_preview_types")
    @classmethod
    def validate_preview_types(cls, v: list[str]) -> list[str]:
        """Only viewports the delivery package can carry are allowed"""
        allowed = {"desktop", "mobile", "dark_mode", "plain_text"}
        unknown = [item for item in v if item not in allowed]
        if unknown:
            raise ValueError(f"Unknown preview types: {unknown}")
        return v

    @property
    def max_html_size_bytes(self) -> int:
        return self.max_html_size_kb * 1024

    @property
    def max_package_size_bytes(self) -> int:
        return self.max_package_size_kb * 1024

    model_config = SettingsConfigDict(env_prefix="HANDOFF_")


class CorrectionSettings(BaseSettings):
    """Guards around the single AI correction round-trip"""

    enabled: bool = Field(True, description="Allow correction when a corrector is configured")
    skip_minor_errors: bool = Field(
        True, description="Skip correction when no critical errors and few total errors"
    )
    minor_error_threshold: int = Field(
        3, ge=1, description="Suggestion count below which non-critical noise is not corrected"
    )
    max_correction_payload_bytes: int = Field(
        200_000, ge=1024, description="Serialized payload ceiling for sending to the corrector"
    )
    correction_timeout_seconds: float = Field(
        60.0, gt=0, description="Caller-side timeout around the corrector call"
    )

    model_config = SettingsConfigDict(env_prefix="CORRECTION_")


class ClaudeSettings(BaseSettings):
    """Claude API configuration for the external corrector"""

    api_key: Optional[str] = Field(None, description="Anthropic API key")
    model: str = Field("claude-3-haiku-20240307")
    api_url: str = Field("https://api.anthropic.com/v1/messages")
    max_tokens: int = Field(4000, ge=100, le=8000)
    temperature: float = Field(0.1, ge=0.0, le=1.0)
    timeout_seconds: int = Field(30, ge=5, le=120)
    max_retries: int = Field(2, ge=0, le=5)

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        """Validate Claude API key format"""
        if v is None or v == "":
            return None
        if not v.startswith("sk-ant-"):
            raise ValueError("Claude API key must start with sk-ant-")
        if len(v) < 20:
            raise ValueError("Claude API key appears to be too short")
        return v

    model_config = SettingsConfigDict(env_prefix="CLAUDE_")


class MonitoringSettings(BaseSettings):
    """Logging and metrics configuration"""

    log_level: str = Field("INFO")
    log_format: str = Field("json")  # json, text
    metrics_enabled: bool = Field(True)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format"""
        if v not in ["json", "text"]:
            raise ValueError('Log format must be "json" or "text"')
        return v

    model_config = SettingsConfigDict(env_prefix="MONITORING_")


class ApplicationSettings(BaseSettings):
    """Main application configuration"""

    app_name: str = Field("Email Handoff Validation")
    app_version: str = Field("1.0.0")
    environment: str = Field("development")

    thresholds: ThresholdSettings = Field(default_factory=ThresholdSettings)
    correction: CorrectionSettings = Field(default_factory=CorrectionSettings)
    claude: ClaudeSettings = Field(default_factory=ClaudeSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment name"""
        valid_environments = ["development", "staging", "production"]
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of {valid_environments}")
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> ApplicationSettings:
    """
    Get application settings with caching.
    Uses LRU cache to avoid re-reading environment on every call.
    """
    return ApplicationSettings()


def get_environment_info() -> dict:
    """Get current environment information for debugging"""
    settings = get_settings()

    return {
        "app_name": settings.app_name,
        "app_version": settings.app_version,
        "environment": settings.environment,
        "claude_configured": bool(settings.claude.api_key),
        "claude_model": settings.claude.model,
        "correction_enabled": settings.correction.enabled,
        "metrics_enabled": settings.monitoring.metrics_enabled,
        "thresholds": {
            "max_html_size_kb": settings.thresholds.max_html_size_kb,
            "max_package_size_kb": settings.thresholds.max_package_size_kb,
            "min_quality_score": settings.thresholds.min_quality_score,
            "min_compatibility_score": settings.thresholds.min_compatibility_score,
            "min_accessibility_score": settings.thresholds.min_accessibility_score,
            "max_spam_score": settings.thresholds.max_spam_score,
        },
        "correction_guards": {
            "skip_minor_errors": settings.correction.skip_minor_errors,
            "minor_error_threshold": settings.correction.minor_error_threshold,
            "max_correction_payload_bytes": settings.correction.max_correction_payload_bytes,
        },
    }


__all__ = [
    "ApplicationSettings",
    "ThresholdSettings",
    "CorrectionSettings",
    "ClaudeSettings",
    "MonitoringSettings",
    "get_settings",
    "get_environment_info",
]
