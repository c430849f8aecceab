from .contracts import (
    VARIANT_CONTRACTS,
    ContentToDesignHandoff,
    DesignToQualityHandoff,
    HandoffPayload,
    HandoffVariant,
    QualityToDeliveryHandoff,
)
from .domain import (
    CorrectionAttempt,
    CorrectionState,
    CorrectionSuggestion,
    ErrorKind,
    HandoffValidationError,
    PackageIntegrityReport,
    Priority,
    QualityMetrics,
    RawFailure,
    ReadinessReport,
    Severity,
    StructuralResult,
    ValidationOutcome,
    ValidationRecord,
)

__all__ = [
    "HandoffVariant",
    "HandoffPayload",
    "VARIANT_CONTRACTS",
    "ContentToDesignHandoff",
    "DesignToQualityHandoff",
    "QualityToDeliveryHandoff",
    "ErrorKind",
    "Severity",
    "Priority",
    "CorrectionState",
    "RawFailure",
    "HandoffValidationError",
    "CorrectionSuggestion",
    "StructuralResult",
    "CorrectionAttempt",
    "ValidationOutcome",
    "ValidationRecord",
    "PackageIntegrityReport",
    "QualityMetrics",
    "ReadinessReport",
]
