from .settings import (
    ApplicationSettings,
    ClaudeSettings,
    CorrectionSettings,
    MonitoringSettings,
    ThresholdSettings,
    get_environment_info,
    get_settings,
)

__all__ = [
    "ApplicationSettings",
    "ThresholdSettings",
    "CorrectionSettings",
    "ClaudeSettings",
    "MonitoringSettings",
    "get_settings",
    "get_environment_info",
]
