"""
Unit tests for the validation domain models.
"""
import pytest
from pydantic import ValidationError

from handoff_validation.models.contracts import (
    ContentToDesignHandoff,
    HandoffVariant,
)
from handoff_validation.models.domain import (
    CorrectionAttempt,
    CorrectionState,
    ErrorKind,
    HandoffValidationError,
    PackageIntegrityReport,
    Severity,
    StructuralResult,
    ValidationOutcome,
)
from tests.fixtures.payloads import content_to_design


def _error(field: str, severity: Severity) -> HandoffValidationError:
    return HandoffValidationError(
        field=field, kind=ErrorKind.MISSING, message="missing", severity=severity
    )


class TestValidationOutcome:
    """Test ValidationOutcome behavior"""

    def test_is_frozen(self):
        outcome = ValidationOutcome(valid=True, variant=HandoffVariant.CONTENT_TO_DESIGN)

        with pytest.raises(ValidationError):
            outcome.valid = False

    def test_defaults(self):
        outcome = ValidationOutcome(valid=True, variant=HandoffVariant.CONTENT_TO_DESIGN)

        assert outcome.errors == []
        assert outcome.warnings == []
        assert outcome.correction_suggestions == []
        assert outcome.correction_attempts == 0

    def test_correction_attempts_bounded(self):
        with pytest.raises(ValidationError):
            ValidationOutcome(
                valid=False,
                variant=HandoffVariant.CONTENT_TO_DESIGN,
                correction_attempts=2,
            )

    def test_critical_errors(self):
        outcome = ValidationOutcome(
            valid=False,
            variant=HandoffVariant.CONTENT_TO_DESIGN,
            errors=[
                _error("trace_id", Severity.CRITICAL),
                _error("content_package.complete_content.cta", Severity.MAJOR),
            ],
        )

        assert [e.field for e in outcome.critical_errors] == ["trace_id"]


class TestStructuralResult:
    """Test StructuralResult helpers"""

    def test_passed_with_payload(self):
        payload = ContentToDesignHandoff.model_validate(content_to_design())

        assert StructuralResult(payload=payload).passed is True

    def test_not_passed_with_errors(self):
        result = StructuralResult(errors=[_error("trace_id", Severity.CRITICAL)])

        assert result.passed is False


class TestCorrectionAttempt:
    """Test CorrectionAttempt helpers"""

    def test_corrected_only_with_payload(self):
        skipped = CorrectionAttempt(state=CorrectionState.SKIP, reason="no corrector")
        assert skipped.corrected is False
        assert skipped.corrector_calls == 0

        payload = ContentToDesignHandoff.model_validate(content_to_design())
        attempted = CorrectionAttempt(
            state=CorrectionState.ATTEMPT, payload=payload, corrector_calls=1
        )
        assert attempted.corrected is True


class TestPackageIntegrityReport:
    """Test PackageIntegrityReport helpers"""

    def _report(self, total_kb: float) -> PackageIntegrityReport:
        return PackageIntegrityReport(
            total_files=3,
            total_size_bytes=int(total_kb * 1024),
            total_size_kb=total_kb,
            html_size_kb=1.0,
            mjml_size_kb=0.0,
            assets_size_kb=0.0,
            documentation_size_kb=0.0,
            previews_size_kb=0.0,
            size_limit_kb=600,
            within_size_limit=total_kb <= 600,
        )

    def test_overage(self):
        assert self._report(650.0).overage_kb == pytest.approx(50.0)

    def test_no_overage_within_limit(self):
        assert self._report(120.0).overage_kb == 0.0
