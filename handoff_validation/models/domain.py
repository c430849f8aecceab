"""
Domain models for handoff validation results.

Everything a validation call produces is a frozen Pydantic model: outcomes are
created once per call and never mutated afterwards.
"""
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from handoff_validation.models.contracts import HandoffPayload, HandoffVariant


class ErrorKind(str, Enum):
    """Taxonomy of validation failures"""

    MISSING = "missing"
    INVALID_TYPE = "invalid_type"
    INVALID_VALUE = "invalid_value"
    SIZE_LIMIT = "size_limit"
    FORMAT_ERROR = "format_error"


class Severity(str, Enum):
    """How blocking a validation error is"""

    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class Priority(str, Enum):
    """Correction priority derived from severity"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CorrectionState(str, Enum):
    """States of the correction orchestrator"""

    SKIP = "skip"
    ATTEMPT = "attempt"
    GIVE_UP = "give_up"


# ============================================================================
# Validation errors and suggestions
# ============================================================================


class RawFailure(BaseModel):
    """
    Unclassified failure reported by the structural or semantic layer.

    `code` is either a Pydantic error type (e.g. "string_too_short") or one of
    the semantic codes emitted by the semantic checker.
    """

    field: str
    code: str
    message: str
    current_value: Optional[Any] = None
    expected_value: Optional[Any] = None

    model_config = ConfigDict(frozen=True)


class HandoffValidationError(BaseModel):
    """Classified validation error on a single payload field"""

    field: str = Field(..., description="Dotted path of the offending field")
    kind: ErrorKind
    message: str
    current_value: Optional[Any] = None
    expected_value: Optional[Any] = None
    severity: Severity

    model_config = ConfigDict(frozen=True)


class CorrectionSuggestion(BaseModel):
    """Repair guidance for one validation error"""

    field: str
    issue: str
    suggestion: str
    correction_prompt: str = Field(
        ..., description="Instruction for an external text-correction call"
    )
    priority: Priority

    model_config = ConfigDict(frozen=True)


class StructuralResult(BaseModel):
    """Result of structural validation: a typed payload or the full error list"""

    payload: Optional[HandoffPayload] = None
    errors: list[HandoffValidationError] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def passed(self) -> bool:
        return self.payload is not None and not self.errors


class CorrectionAttempt(BaseModel):
    """What the correction orchestrator decided and produced"""

    state: CorrectionState
    payload: Optional[HandoffPayload] = None
    corrector_calls: int = Field(0, ge=0, le=1)
    reason: str = ""

    model_config = ConfigDict(frozen=True)

    @property
    def corrected(self) -> bool:
        return self.payload is not None


class ValidationOutcome(BaseModel):
    """Result of one handoff validation call"""

    valid: bool
    variant: HandoffVariant
    trace_id: Optional[str] = None
    errors: list[HandoffValidationError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    correction_suggestions: list[CorrectionSuggestion] = Field(default_factory=list)
    validated_data: Optional[HandoffPayload] = None
    duration_ms: int = Field(0, ge=0)
    correction_attempts: int = Field(0, ge=0, le=1)

    model_config = ConfigDict(frozen=True)

    @property
    def critical_errors(self) -> list[HandoffValidationError]:
        return [e for e in self.errors if e.severity == Severity.CRITICAL]


# ============================================================================
# Metrics
# ============================================================================


class ValidationRecord(BaseModel):
    """One metrics record per validation call"""

    agent_id: str
    success: bool
    duration_ms: int = Field(ge=0)
    correction_attempts: int = Field(0, ge=0)
    variant: Optional[HandoffVariant] = None
    trace_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)


# ============================================================================
# Delivery readiness
# ============================================================================


class PackageIntegrityReport(BaseModel):
    """File counts and byte sizes of the final delivery package"""

    total_files: int = Field(ge=0)
    total_size_bytes: int = Field(ge=0)
    total_size_kb: float = Field(ge=0)
    html_size_kb: float = Field(ge=0)
    mjml_size_kb: float = Field(ge=0)
    assets_size_kb: float = Field(ge=0)
    documentation_size_kb: float = Field(ge=0)
    previews_size_kb: float = Field(ge=0)
    size_limit_kb: float = Field(gt=0)
    within_size_limit: bool
    missing_files: list[str] = Field(default_factory=list)

    @property
    def overage_kb(self) -> float:
        return max(self.total_size_kb - self.size_limit_kb, 0.0)


class QualityMetrics(BaseModel):
    """Condensed quality scores of a Quality -> Delivery payload"""

    overall_score: float
    html_quality: float
    accessibility_score: float
    compatibility_score: float
    performance_score: float
    spam_risk_score: float


class ReadinessReport(BaseModel):
    """Final go/no-go summary before a package leaves the system"""

    ready: bool
    blockers: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    summary: str
    integrity: PackageIntegrityReport
    quality_metrics: QualityMetrics

    model_config = ConfigDict(frozen=True)


__all__ = [
    # Enums
    "ErrorKind",
    "Severity",
    "Priority",
    "CorrectionState",
    # Validation models
    "RawFailure",
    "HandoffValidationError",
    "CorrectionSuggestion",
    "StructuralResult",
    "CorrectionAttempt",
    "ValidationOutcome",
    # Metrics
    "ValidationRecord",
    # Readiness
    "PackageIntegrityReport",
    "QualityMetrics",
    "ReadinessReport",
]
