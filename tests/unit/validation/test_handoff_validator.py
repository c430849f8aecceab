"""
Unit tests for the HandoffValidator facade.

Covers acceptance, rejection, the correction paths and metrics recording.
"""
import asyncio
from unittest.mock import MagicMock

import pytest

from handoff_validation.config.settings import ApplicationSettings, CorrectionSettings
from handoff_validation.core.exceptions import CorrectorError, UnknownVariantError
from handoff_validation.models.contracts import HandoffVariant
from handoff_validation.models.domain import ErrorKind, Severity
from handoff_validation.pipeline.validation.handoff_validator import (
    CORRECTED_WARNING,
    HandoffValidator,
    missing_handoff_sections,
)
from tests.fixtures.payloads import (
    OTHER_TRACE_ID,
    TRACE_ID,
    content_to_design,
    design_to_quality,
    html_of_size,
    quality_to_delivery,
)


@pytest.fixture
def correcting_validator(settings, corrector, monitor):
    return HandoffValidator(settings, corrector=corrector, metrics_sink=monitor)


def _empty_content() -> dict:
    raw = content_to_design()
    raw["content_package"]["complete_content"] = {
        "subject": "",
        "preheader": "",
        "body": "",
        "cta": "",
    }
    return raw


class TestAcceptance:
    """Valid payloads"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "factory,variant",
        [
            (content_to_design, HandoffVariant.CONTENT_TO_DESIGN),
            (design_to_quality, HandoffVariant.DESIGN_TO_QUALITY),
            (quality_to_delivery, HandoffVariant.QUALITY_TO_DELIVERY),
        ],
    )
    async def test_valid_payload_accepted(self, validator, factory, variant):
        outcome = await validator.validate(factory(), variant)

        assert outcome.valid
        assert outcome.variant is variant
        assert outcome.trace_id == TRACE_ID
        assert outcome.validated_data.trace_id == TRACE_ID
        assert outcome.correction_attempts == 0

    @pytest.mark.asyncio
    async def test_idempotent_acceptance(self, validator):
        raw = quality_to_delivery()

        first = await validator.validate(raw, HandoffVariant.QUALITY_TO_DELIVERY)
        second = await validator.validate(raw, HandoffVariant.QUALITY_TO_DELIVERY)

        assert first.valid and second.valid
        assert first.errors == second.errors == []
        assert first.warnings == second.warnings == []
        assert first is not second

    @pytest.mark.asyncio
    async def test_string_variant(self, validator):
        outcome = await validator.validate(content_to_design(), "content-to-design")

        assert outcome.variant is HandoffVariant.CONTENT_TO_DESIGN

    @pytest.mark.asyncio
    async def test_unknown_variant_raises(self, validator, monitor):
        with pytest.raises(UnknownVariantError):
            await validator.validate(content_to_design(), "design-to-delivery")

        assert monitor.records == ()


class TestRejection:
    """Invalid payloads without a successful correction"""

    @pytest.mark.asyncio
    async def test_empty_content(self, validator):
        outcome = await validator.validate(_empty_content(), HandoffVariant.CONTENT_TO_DESIGN)

        assert not outcome.valid
        assert len(outcome.errors) == 4
        assert all(e.kind in (ErrorKind.MISSING, ErrorKind.INVALID_VALUE) for e in outcome.errors)
        assert all(e.severity in (Severity.CRITICAL, Severity.MAJOR) for e in outcome.errors)
        assert len(outcome.critical_errors) == 2
        assert len(outcome.correction_suggestions) == 4
        assert outcome.warnings == ["correction skipped: no corrector configured"]
        assert outcome.validated_data is None

    @pytest.mark.asyncio
    async def test_low_quality_score(self, validator):
        raw = quality_to_delivery()
        raw["quality_package"]["quality_score"] = 65

        outcome = await validator.validate(raw, HandoffVariant.QUALITY_TO_DELIVERY)

        assert not outcome.valid
        assert len(outcome.errors) == 1
        error = outcome.errors[0]
        assert error.field == "quality_package.quality_score"
        assert error.kind == ErrorKind.INVALID_VALUE
        assert error.current_value == 65
        assert error.expected_value == 70

    @pytest.mark.asyncio
    async def test_html_size_ceiling(self, validator):
        at_limit = await validator.validate(
            design_to_quality(html=html_of_size(102400)), HandoffVariant.DESIGN_TO_QUALITY
        )
        over_limit = await validator.validate(
            design_to_quality(html=html_of_size(102401)), HandoffVariant.DESIGN_TO_QUALITY
        )

        assert at_limit.valid
        assert not over_limit.valid
        assert [e.kind for e in over_limit.errors] == [ErrorKind.SIZE_LIMIT]

    @pytest.mark.asyncio
    async def test_correction_disabled_per_call(self, correcting_validator, corrector):
        outcome = await correcting_validator.validate(
            _empty_content(), HandoffVariant.CONTENT_TO_DESIGN, enable_correction=False
        )

        assert not outcome.valid
        assert outcome.warnings == ["correction skipped: correction disabled"]
        corrector.correct.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_correction_disabled_in_settings(self, settings, corrector):
        settings = settings.model_copy(
            update={"correction": CorrectionSettings(enabled=False)}
        )
        validator = HandoffValidator(settings, corrector=corrector)

        outcome = await validator.validate(_empty_content(), HandoffVariant.CONTENT_TO_DESIGN)

        assert not outcome.valid
        corrector.correct.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_minor_errors_skip_correction(self, correcting_validator, corrector):
        raw = content_to_design()
        raw["campaign_context"]["urgency_level"] = "urgent"

        outcome = await correcting_validator.validate(raw, HandoffVariant.CONTENT_TO_DESIGN)

        assert not outcome.valid
        assert outcome.errors[0].severity == Severity.MINOR
        assert outcome.warnings[0].startswith("correction skipped:")
        corrector.correct.assert_not_awaited()


    @pytest.mark.asyncio
    async def test_unsupported_clients_and_placeholder_html(self, validator):
        raw = quality_to_delivery()
        clients = raw["test_results"]["email_client_compatibility"]
        clients["outlook"] = False
        clients["gmail"] = False
        raw["delivery_package"]["html_email"] = "<p>placeholder {{first_name}}</p>" + "x" * 200

        outcome = await validator.validate(raw, HandoffVariant.QUALITY_TO_DELIVERY)

        assert not outcome.valid
        assert [(e.field, e.kind) for e in outcome.errors] == [
            ("test_results.email_client_compatibility", ErrorKind.INVALID_VALUE),
            ("delivery_package.html_email", ErrorKind.FORMAT_ERROR),
            ("delivery_package.html_email", ErrorKind.INVALID_VALUE),
        ]
        assert outcome.errors[0].current_value == ["Gmail", "Outlook"]
        assert outcome.errors[2].current_value == ["placeholder", "{{first_name}}"]


class TestTraceContinuity:
    """Payloads checked against a trace_id assigned earlier in the campaign"""

    @pytest.mark.asyncio
    async def test_matching_trace_accepted(self, validator):
        outcome = await validator.validate(
            content_to_design(), HandoffVariant.CONTENT_TO_DESIGN, expected_trace_id=TRACE_ID
        )

        assert outcome.valid

    @pytest.mark.asyncio
    async def test_mismatch_rejected_without_correction(
        self, correcting_validator, corrector, monitor
    ):
        outcome = await correcting_validator.validate(
            content_to_design(trace_id=OTHER_TRACE_ID),
            HandoffVariant.CONTENT_TO_DESIGN,
            expected_trace_id=TRACE_ID,
        )

        assert not outcome.valid
        assert outcome.validated_data is None
        assert outcome.trace_id == OTHER_TRACE_ID
        error = outcome.errors[0]
        assert error.field == "trace_id"
        assert error.severity == Severity.CRITICAL
        assert error.current_value == OTHER_TRACE_ID
        assert error.expected_value == TRACE_ID
        assert outcome.warnings == ["correction skipped: trace_id differs from the campaign trace"]
        corrector.correct.assert_not_awaited()

        record = monitor.records[-1]
        assert record.success is False
        assert record.trace_id == OTHER_TRACE_ID

    @pytest.mark.asyncio
    async def test_mismatch_listed_before_other_errors(self, validator):
        raw = _empty_content()
        raw["trace_id"] = OTHER_TRACE_ID

        outcome = await validator.validate(
            raw, HandoffVariant.CONTENT_TO_DESIGN, expected_trace_id=TRACE_ID
        )

        assert [e.field for e in outcome.errors][0] == "trace_id"
        assert len(outcome.errors) == 5

    @pytest.mark.asyncio
    async def test_malformed_trace_not_carried(self, validator, monitor):
        raw = content_to_design()
        raw["trace_id"] = "campaign-42"

        outcome = await validator.validate(raw, HandoffVariant.CONTENT_TO_DESIGN)

        assert not outcome.valid
        assert outcome.trace_id is None
        assert outcome.errors[0].kind == ErrorKind.FORMAT_ERROR
        assert monitor.records[-1].trace_id is None
        assert monitor.records[-1].success is False


class TestCorrection:
    """Correction paths through the facade"""

    @pytest.mark.asyncio
    async def test_missing_trace_id_always_attempts_correction(
        self, correcting_validator, corrector
    ):
        raw = content_to_design()
        del raw["trace_id"]
        corrector.correct.return_value = content_to_design()

        outcome = await correcting_validator.validate(raw, HandoffVariant.CONTENT_TO_DESIGN)

        corrector.correct.assert_awaited_once()
        assert outcome.valid
        assert outcome.errors == []
        assert outcome.warnings == [CORRECTED_WARNING]
        assert outcome.correction_attempts == 1
        assert outcome.trace_id == TRACE_ID
        assert outcome.correction_suggestions[0].field == "trace_id"

    @pytest.mark.asyncio
    async def test_failed_correction_keeps_original_errors(
        self, correcting_validator, corrector
    ):
        raw = _empty_content()
        corrector.correct.return_value = _empty_content()

        outcome = await correcting_validator.validate(raw, HandoffVariant.CONTENT_TO_DESIGN)

        corrector.correct.assert_awaited_once()
        assert not outcome.valid
        assert len(outcome.errors) == 4
        assert outcome.warnings[0].startswith("correction failed:")
        assert outcome.correction_attempts == 1

    @pytest.mark.asyncio
    async def test_corrector_error(self, correcting_validator, corrector):
        corrector.correct.side_effect = CorrectorError("HTTP 503", status_code=503)

        outcome = await correcting_validator.validate(
            _empty_content(), HandoffVariant.CONTENT_TO_DESIGN
        )

        assert not outcome.valid
        assert "HTTP 503" in outcome.warnings[0]

    @pytest.mark.asyncio
    async def test_timeout_is_give_up(self, settings, corrector):
        async def slow_correct(*args):
            await asyncio.sleep(5)
            return content_to_design()

        corrector.correct.side_effect = slow_correct
        settings = settings.model_copy(
            update={"correction": CorrectionSettings(correction_timeout_seconds=0.05)}
        )
        validator = HandoffValidator(settings, corrector=corrector)

        outcome = await validator.validate(_empty_content(), HandoffVariant.CONTENT_TO_DESIGN)

        assert not outcome.valid
        assert outcome.warnings[0].startswith("correction failed: corrector timed out")
        assert outcome.correction_attempts == 1


class TestMetrics:
    """One metrics record per call; sink failures never fail validation"""

    @pytest.mark.asyncio
    async def test_records_per_call(self, validator, monitor):
        await validator.validate(content_to_design(), HandoffVariant.CONTENT_TO_DESIGN)
        await validator.validate(_empty_content(), HandoffVariant.CONTENT_TO_DESIGN)
        await validator.validate(design_to_quality(), HandoffVariant.DESIGN_TO_QUALITY)

        records = monitor.records
        assert [r.agent_id for r in records] == [
            "content-specialist",
            "content-specialist",
            "design-specialist",
        ]
        assert [r.success for r in records] == [True, False, True]
        assert all(r.trace_id == TRACE_ID for r in records)

    @pytest.mark.asyncio
    async def test_sink_failure_is_swallowed(self, settings):
        sink = MagicMock()
        sink.record.side_effect = RuntimeError("metrics backend down")
        validator = HandoffValidator(settings, metrics_sink=sink)

        outcome = await validator.validate(content_to_design(), HandoffVariant.CONTENT_TO_DESIGN)

        assert outcome.valid
        sink.record.assert_called_once()

    @pytest.mark.asyncio
    async def test_metrics_disabled(self, settings):
        sink = MagicMock()
        settings = settings.model_copy(
            update={"monitoring": settings.monitoring.model_copy(update={"metrics_enabled": False})}
        )
        validator = HandoffValidator(settings, metrics_sink=sink)

        await validator.validate(content_to_design(), HandoffVariant.CONTENT_TO_DESIGN)

        sink.record.assert_not_called()


class TestIntegrityCheck:
    """Fast precheck of provenance and required sections"""

    def test_complete_payload(self, validator):
        assert validator.check_handoff_integrity(content_to_design(), "content-to-design")

    def test_missing_sections(self, validator):
        raw = design_to_quality()
        del raw["rendering_metadata"]
        raw["trace_id"] = ""

        assert not validator.check_handoff_integrity(raw, HandoffVariant.DESIGN_TO_QUALITY)
        assert missing_handoff_sections(raw, HandoffVariant.DESIGN_TO_QUALITY) == [
            "trace_id",
            "rendering_metadata",
        ]

    def test_non_mapping(self):
        assert missing_handoff_sections(None, HandoffVariant.QUALITY_TO_DELIVERY) == [
            "trace_id",
            "timestamp",
            "quality_package",
            "test_results",
        ]

    def test_unknown_variant(self, validator):
        with pytest.raises(UnknownVariantError):
            validator.check_handoff_integrity(content_to_design(), "unknown")


def test_default_settings_are_loaded():
    validator = HandoffValidator()

    assert isinstance(validator.settings, ApplicationSettings)
