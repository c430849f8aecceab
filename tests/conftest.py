"""
Shared fixtures for the handoff validation test suite.
"""
from unittest.mock import AsyncMock

import pytest

from handoff_validation.config.settings import (
    ApplicationSettings,
    ClaudeSettings,
    CorrectionSettings,
    MonitoringSettings,
    ThresholdSettings,
)
from handoff_validation.pipeline.validation.handoff_validator import HandoffValidator
from handoff_validation.pipeline.validation.readiness_auditor import (
    PackageReadinessAuditor,
)
from handoff_validation.services.validation_monitor import ValidationMonitor


@pytest.fixture
def thresholds():
    """Default thresholds, independent of the environment"""
    return ThresholdSettings(_env_file=None)


@pytest.fixture
def correction_settings():
    return CorrectionSettings(_env_file=None)


@pytest.fixture
def settings(thresholds, correction_settings):
    """Application settings with defaults and no Claude key"""
    return ApplicationSettings(
        _env_file=None,
        environment="development",
        thresholds=thresholds,
        correction=correction_settings,
        claude=ClaudeSettings(_env_file=None, api_key=None),
        monitoring=MonitoringSettings(_env_file=None),
    )


@pytest.fixture
def monitor():
    return ValidationMonitor()


@pytest.fixture
def corrector():
    """Corrector double; tests set correct.return_value or side_effect"""
    mock = AsyncMock()
    mock.correct = AsyncMock()
    return mock


@pytest.fixture
def validator(settings, monitor):
    """Validator without a corrector"""
    return HandoffValidator(settings, metrics_sink=monitor)


@pytest.fixture
def auditor(thresholds):
    return PackageReadinessAuditor(thresholds)
