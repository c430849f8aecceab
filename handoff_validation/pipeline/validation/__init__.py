from .correction_advisor import suggest
from .correction_orchestrator import CorrectionOrchestrator, Corrector
from .error_classifier import classify
from .handoff_validator import HandoffValidator, MetricsSink
from .readiness_auditor import PackageReadinessAuditor
from .semantic_checker import SemanticChecker
from .structural_validator import validate_structure

__all__ = [
    "validate_structure",
    "SemanticChecker",
    "classify",
    "suggest",
    "CorrectionOrchestrator",
    "Corrector",
    "PackageReadinessAuditor",
    "HandoffValidator",
    "MetricsSink",
]
