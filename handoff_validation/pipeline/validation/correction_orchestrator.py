"""
Correction Orchestrator

Decides whether an invalid payload is worth sending to the external corrector,
calls it at most once, and re-validates whatever comes back.

    Skip     -> the corrector is not called
    Attempt  -> one corrector call, then structural and semantic re-validation
    Give-up  -> the call failed or its result is still invalid; never retried
"""
import json
from typing import Any, Optional, Protocol, Union

import structlog

from handoff_validation.config.settings import CorrectionSettings, ThresholdSettings
from handoff_validation.models.contracts import HandoffVariant
from handoff_validation.models.domain import (
    CorrectionAttempt,
    CorrectionState,
    CorrectionSuggestion,
    Priority,
)
from handoff_validation.pipeline.validation.semantic_checker import SemanticChecker
from handoff_validation.pipeline.validation.structural_validator import (
    resolve_variant,
    valid_trace_id,
    validate_structure,
)

logger = structlog.get_logger(__name__)


class Corrector(Protocol):
    """External capability that repairs an invalid payload"""

    async def correct(
        self,
        payload: dict[str, Any],
        suggestions: list[CorrectionSuggestion],
        variant: HandoffVariant,
    ) -> dict[str, Any]:
        ...


def serialized_size(payload: Any) -> int:
    """UTF-8 byte size of the payload as it would be sent to the corrector"""
    return len(json.dumps(payload, ensure_ascii=False, default=str).encode("utf-8"))


class CorrectionOrchestrator:
    """Single-attempt correction state machine"""

    def __init__(self, settings: CorrectionSettings, thresholds: ThresholdSettings):
        self.settings = settings
        self.semantic_checker = SemanticChecker(thresholds)
        self.logger = logger.bind(component="correction_orchestrator")

    def skip_reason(
        self,
        raw: Any,
        suggestions: list[CorrectionSuggestion],
        corrector: Optional[Corrector],
    ) -> Optional[str]:
        """Reason to skip correction, or None when an attempt should be made"""
        if corrector is None:
            return "no corrector configured"

        high_priority = sum(1 for s in suggestions if s.priority == Priority.HIGH)
        if (
            self.settings.skip_minor_errors
            and high_priority == 0
            and len(suggestions) < self.settings.minor_error_threshold
        ):
            return (
                f"{len(suggestions)} non-critical error(s) below the threshold "
                f"of {self.settings.minor_error_threshold}"
            )

        size = serialized_size(raw)
        if size > self.settings.max_correction_payload_bytes:
            return (
                f"payload is {size} bytes, over the "
                f"{self.settings.max_correction_payload_bytes} byte correction limit"
            )

        return None

    async def attempt_correction(
        self,
        raw: Any,
        suggestions: list[CorrectionSuggestion],
        variant: Union[HandoffVariant, str],
        corrector: Optional[Corrector],
    ) -> CorrectionAttempt:
        """
        Run the correction state machine for one validation call.

        Args:
            raw: The invalid raw payload
            suggestions: Suggestions built for every error in the payload
            variant: Handoff boundary the payload is crossing
            corrector: External corrector, or None when none is configured

        Returns:
            CorrectionAttempt; its payload is set only when the corrected
            payload passed structural and semantic re-validation
        """
        variant = resolve_variant(variant)
        attempt_logger = self.logger.bind(
            variant=variant.value, trace_id=valid_trace_id(raw)
        )

        reason = self.skip_reason(raw, suggestions, corrector)
        if reason:
            attempt_logger.info("Correction skipped", reason=reason)
            return CorrectionAttempt(state=CorrectionState.SKIP, reason=reason)

        attempt_logger.info(
            "Attempting correction",
            suggestion_count=len(suggestions),
            high_priority=sum(1 for s in suggestions if s.priority == Priority.HIGH),
        )

        try:
            corrected = await corrector.correct(raw, suggestions, variant)
        except Exception as e:
            attempt_logger.warning("Corrector call failed", error=str(e))
            return self._give_up(f"corrector raised {type(e).__name__}: {e}")

        if not isinstance(corrected, dict):
            return self._give_up(
                f"corrector returned {type(corrected).__name__}, expected an object"
            )

        original_trace = valid_trace_id(raw)
        if original_trace and corrected.get("trace_id") != original_trace:
            attempt_logger.warning(
                "Corrector changed trace_id", corrected_trace_id=corrected.get("trace_id")
            )
            return self._give_up("corrected payload changed the trace_id")

        structural = validate_structure(corrected, variant)
        if not structural.passed:
            return self._give_up(
                f"corrected payload still has {len(structural.errors)} structural error(s)"
            )

        semantic_errors = self.semantic_checker.check_semantics(structural.payload, variant)
        if semantic_errors:
            return self._give_up(
                f"corrected payload still has {len(semantic_errors)} semantic error(s)"
            )

        attempt_logger.info("Correction succeeded")
        return CorrectionAttempt(
            state=CorrectionState.ATTEMPT,
            payload=structural.payload,
            corrector_calls=1,
            reason="corrected by external corrector",
        )

    def _give_up(self, reason: str) -> CorrectionAttempt:
        self.logger.info("Correction given up", reason=reason)
        return CorrectionAttempt(
            state=CorrectionState.GIVE_UP, corrector_calls=1, reason=reason
        )


__all__ = [
    "CorrectionOrchestrator",
    "Corrector",
    "serialized_size",
]
