"""
Handoff Validator

Entry point used by the pipeline stages. Runs structural and semantic
validation, builds correction suggestions for failures, lets the correction
orchestrator try a single repair, and records one metrics record per call.

The validator holds only its injected collaborators, so one long-lived instance
can serve any number of concurrent pipelines.
"""
import asyncio
import time
from typing import Any, Optional, Protocol, Union

import structlog

from handoff_validation.config.settings import ApplicationSettings, get_settings
from handoff_validation.models.contracts import (
    REQUIRED_SECTIONS,
    HandoffPayload,
    HandoffVariant,
)
from handoff_validation.models.domain import (
    CorrectionAttempt,
    CorrectionState,
    HandoffValidationError,
    RawFailure,
    Severity,
    ValidationOutcome,
    ValidationRecord,
)
from handoff_validation.pipeline.validation.correction_advisor import suggest
from handoff_validation.pipeline.validation.correction_orchestrator import (
    CorrectionOrchestrator,
    Corrector,
)
from handoff_validation.pipeline.validation.error_classifier import classify
from handoff_validation.pipeline.validation.semantic_checker import SemanticChecker
from handoff_validation.pipeline.validation.structural_validator import (
    resolve_variant,
    valid_trace_id,
    validate_structure,
)

logger = structlog.get_logger(__name__)

CORRECTED_WARNING = "corrected by external corrector"


class MetricsSink(Protocol):
    """Receives one record per validation call"""

    def record(self, record: ValidationRecord) -> None:
        ...


def missing_handoff_sections(raw: Any, variant: Union[HandoffVariant, str]) -> list[str]:
    """Top-level keys a payload of this variant must carry but does not"""
    variant = resolve_variant(variant)
    if not isinstance(raw, dict):
        return ["trace_id", "timestamp", *REQUIRED_SECTIONS[variant]]
    required = ("trace_id", "timestamp", *REQUIRED_SECTIONS[variant])
    return [key for key in required if not raw.get(key)]


def trace_mismatch(
    received: Optional[str], expected: Optional[str]
) -> list[HandoffValidationError]:
    """A critical trace_id error when a payload carries another campaign's trace"""
    if expected is None or received is None or received == expected:
        return []
    return classify(
        [
            RawFailure(
                field="trace_id",
                code="trace_mismatch",
                message="trace_id differs from the one assigned at the first handoff",
                current_value=received,
                expected_value=expected,
            )
        ]
    )


class HandoffValidator:
    """Validates payloads crossing a stage boundary"""

    def __init__(
        self,
        settings: Optional[ApplicationSettings] = None,
        corrector: Optional[Corrector] = None,
        metrics_sink: Optional[MetricsSink] = None,
    ):
        self.settings = settings or get_settings()
        self.corrector = corrector
        self.metrics_sink = metrics_sink

        self.semantic_checker = SemanticChecker(self.settings.thresholds)
        self.orchestrator = CorrectionOrchestrator(
            self.settings.correction, self.settings.thresholds
        )
        self.logger = logger.bind(component="handoff_validator")

    async def validate(
        self,
        raw: Any,
        variant: Union[HandoffVariant, str],
        enable_correction: bool = True,
        expected_trace_id: Optional[str] = None,
    ) -> ValidationOutcome:
        """
        Validate a raw payload for a handoff boundary.

        Args:
            raw: Untyped payload from the producing stage
            variant: Handoff boundary the payload is crossing
            enable_correction: Allow a single correction round-trip
            expected_trace_id: trace_id the payload must carry, when one is already assigned

        Returns:
            A new ValidationOutcome; validation failures are reported as data

        Raises:
            UnknownVariantError: If the variant is not recognized
        """
        variant = resolve_variant(variant)
        start_time = time.time()
        trace_id = valid_trace_id(raw)

        call_logger = self.logger.bind(trace_id=trace_id, variant=variant.value)
        call_logger.debug("Validating handoff")

        payload, errors = self._check(raw, variant)
        mismatch = trace_mismatch(trace_id, expected_trace_id)
        if mismatch:
            errors = [*mismatch, *errors]

        if not errors:
            outcome = ValidationOutcome(
                valid=True,
                variant=variant,
                trace_id=trace_id,
                validated_data=payload,
                duration_ms=self._elapsed_ms(start_time),
            )
            call_logger.info("Handoff accepted", duration_ms=outcome.duration_ms)
            self._record_metrics(outcome)
            return outcome

        suggestions = suggest(errors, raw, variant)
        call_logger.info(
            "Handoff validation failed",
            error_count=len(errors),
            critical_count=sum(1 for e in errors if e.severity == Severity.CRITICAL),
        )

        if mismatch:
            # Correction preserves trace_id, so a mismatch is never repairable
            attempt = CorrectionAttempt(
                state=CorrectionState.SKIP, reason="trace_id differs from the campaign trace"
            )
        elif enable_correction and self.settings.correction.enabled:
            attempt = await self._run_correction(raw, suggestions, variant)
        else:
            attempt = CorrectionAttempt(
                state=CorrectionState.SKIP, reason="correction disabled"
            )

        if attempt.corrected:
            outcome = ValidationOutcome(
                valid=True,
                variant=variant,
                trace_id=attempt.payload.trace_id,
                warnings=[CORRECTED_WARNING],
                correction_suggestions=suggestions,
                validated_data=attempt.payload,
                duration_ms=self._elapsed_ms(start_time),
                correction_attempts=attempt.corrector_calls,
            )
            call_logger.info("Handoff accepted after correction")
        else:
            prefix = (
                "correction skipped"
                if attempt.state == CorrectionState.SKIP
                else "correction failed"
            )
            outcome = ValidationOutcome(
                valid=False,
                variant=variant,
                trace_id=trace_id,
                errors=errors,
                warnings=[f"{prefix}: {attempt.reason}"],
                correction_suggestions=suggestions,
                duration_ms=self._elapsed_ms(start_time),
                correction_attempts=attempt.corrector_calls,
            )
            call_logger.warning(
                "Handoff rejected",
                error_count=len(errors),
                correction_state=attempt.state.value,
            )

        self._record_metrics(outcome)
        return outcome

    def check_handoff_integrity(self, raw: Any, variant: Union[HandoffVariant, str]) -> bool:
        """Fast precheck for provenance fields and the variant's required sections"""
        missing = missing_handoff_sections(raw, variant)
        if missing:
            self.logger.warning("Handoff integrity check failed", missing=missing)
            return False
        return True

    def _check(
        self, raw: Any, variant: HandoffVariant
    ) -> tuple[Optional[HandoffPayload], list[HandoffValidationError]]:
        structural = validate_structure(raw, variant)
        if not structural.passed:
            return None, structural.errors
        return structural.payload, self.semantic_checker.check_semantics(
            structural.payload, variant
        )

    async def _run_correction(self, raw, suggestions, variant) -> CorrectionAttempt:
        timeout = self.settings.correction.correction_timeout_seconds
        try:
            return await asyncio.wait_for(
                self.orchestrator.attempt_correction(
                    raw, suggestions, variant, self.corrector
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            self.logger.warning("Correction timed out", timeout_seconds=timeout)
            return CorrectionAttempt(
                state=CorrectionState.GIVE_UP,
                corrector_calls=1,
                reason=f"corrector timed out after {timeout:g}s",
            )

    def _record_metrics(self, outcome: ValidationOutcome) -> None:
        if self.metrics_sink is None or not self.settings.monitoring.metrics_enabled:
            return

        record = ValidationRecord(
            agent_id=outcome.variant.producing_agent,
            success=outcome.valid,
            duration_ms=outcome.duration_ms,
            correction_attempts=outcome.correction_attempts,
            variant=outcome.variant,
            trace_id=outcome.trace_id,
        )
        try:
            self.metrics_sink.record(record)
        except Exception as e:
            # Metrics are fire-and-forget
            self.logger.error("Failed to record validation metrics", error=str(e))

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.time() - start_time) * 1000)


__all__ = [
    "CORRECTED_WARNING",
    "HandoffValidator",
    "MetricsSink",
    "missing_handoff_sections",
    "trace_mismatch",
]
