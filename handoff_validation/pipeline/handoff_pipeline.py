"""
Handoff Pipeline

Tracks the handoffs of one campaign through Content -> Design -> Quality ->
Delivery. Enforces stage order, keeps a single trace_id across every handoff,
halts on the first rejected payload and audits the final delivery package.
"""
from typing import Any, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict

from handoff_validation.core.exceptions import PipelineHaltedError, StageOrderError
from handoff_validation.models.contracts import HandoffVariant
from handoff_validation.models.domain import ReadinessReport, ValidationOutcome
from handoff_validation.pipeline.validation.handoff_validator import HandoffValidator
from handoff_validation.pipeline.validation.readiness_auditor import (
    PackageReadinessAuditor,
)
from handoff_validation.pipeline.validation.structural_validator import resolve_variant

logger = structlog.get_logger(__name__)

STAGE_ORDER: tuple[HandoffVariant, ...] = (
    HandoffVariant.CONTENT_TO_DESIGN,
    HandoffVariant.DESIGN_TO_QUALITY,
    HandoffVariant.QUALITY_TO_DELIVERY,
)


class HandoffResult(BaseModel):
    """Validation outcome of one handoff, plus the audit for the final one"""

    outcome: ValidationOutcome
    readiness: Optional[ReadinessReport] = None

    model_config = ConfigDict(frozen=True)

    @property
    def accepted(self) -> bool:
        return self.outcome.valid


class HandoffPipeline:
    """
    Per-campaign handoff tracker.

    One instance follows one campaign; the validator and auditor it is given
    can be shared between any number of pipelines.
    """

    def __init__(
        self,
        validator: HandoffValidator,
        auditor: PackageReadinessAuditor,
        trace_id: Optional[str] = None,
    ) -> None:
        self.validator = validator
        self.auditor = auditor
        self.trace_id = trace_id
        self.results: list[HandoffResult] = []
        self.halted_at: Optional[HandoffVariant] = None
        self._next_stage = 0
        self.logger = logger.bind(component="handoff_pipeline")

    @property
    def expected_variant(self) -> Optional[HandoffVariant]:
        if self._next_stage >= len(STAGE_ORDER):
            return None
        return STAGE_ORDER[self._next_stage]

    @property
    def halted(self) -> bool:
        return self.halted_at is not None

    @property
    def completed(self) -> bool:
        return self.expected_variant is None

    @property
    def delivery_ready(self) -> bool:
        """True once the final package has passed the readiness audit"""
        return (
            self.completed
            and bool(self.results)
            and self.results[-1].readiness is not None
            and self.results[-1].readiness.ready
        )

    async def submit(self, raw: Any, variant: Union[HandoffVariant, str]) -> HandoffResult:
        """
        Validate the next handoff of the campaign.

        Args:
            raw: Untyped payload from the producing stage
            variant: Handoff boundary the payload is crossing

        Returns:
            HandoffResult; readiness is set for an accepted delivery handoff

        Raises:
            PipelineHaltedError: If an earlier handoff was rejected
            StageOrderError: If the variant is not the next expected stage
        """
        variant = resolve_variant(variant)

        if self.halted:
            raise PipelineHaltedError(self.trace_id, self.halted_at.value)

        expected = self.expected_variant
        if variant != expected:
            raise StageOrderError(expected.value if expected else None, variant.value)

        outcome = await self.validator.validate(
            raw, variant, expected_trace_id=self.trace_id
        )

        pipeline_logger = self.logger.bind(trace_id=self.trace_id, variant=variant.value)

        if not outcome.valid:
            self.halted_at = variant
            pipeline_logger.warning(
                "Pipeline halted on rejected handoff", error_count=len(outcome.errors)
            )
            result = HandoffResult(outcome=outcome)
            self.results.append(result)
            return result

        if self.trace_id is None:
            self.trace_id = outcome.validated_data.trace_id
        self._next_stage += 1

        readiness = None
        if variant == HandoffVariant.QUALITY_TO_DELIVERY:
            readiness = self.auditor.is_ready_for_delivery(outcome.validated_data)
            if not readiness.ready:
                pipeline_logger.warning(
                    "Delivery package not ready", blockers=readiness.blockers
                )

        pipeline_logger.info("Handoff accepted", stage=self._next_stage)
        result = HandoffResult(outcome=outcome, readiness=readiness)
        self.results.append(result)
        return result


__all__ = [
    "STAGE_ORDER",
    "HandoffPipeline",
    "HandoffResult",
]
