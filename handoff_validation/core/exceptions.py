"""
Custom exception classes for the handoff validation engine.

Expected validation failures are never raised: they are returned as data inside
a ValidationOutcome. These exceptions cover programming and configuration errors
and failures of external collaborators.
"""

from typing import Any, Optional


class HandoffEngineError(Exception):
    """
    Base exception class for all engine errors

    Attributes:
        message: Error message
        stage: Pipeline stage or component where the error occurred
        details: Additional error details
        original_exception: Original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
    ):
        self.message = message
        self.stage = stage
        self.details = details or {}
        self.original_exception = original_exception

        full_message = message
        if stage:
            full_message = f"[{stage.upper()}] {message}"

        super().__init__(full_message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "stage": self.stage,
            "details": self.details,
            "original_exception": str(self.original_exception)
            if self.original_exception
            else None,
        }


class UnknownVariantError(HandoffEngineError):
    """Raised when a caller asks for a handoff variant the engine does not know"""

    def __init__(self, variant: Any):
        super().__init__(
            message=f"Unknown handoff variant: {variant!r}",
            stage="validation",
            details={"variant": repr(variant)},
        )


class ConfigurationError(HandoffEngineError):
    """
    Exception raised for configuration-related errors

    Common causes:
    - Missing environment variables
    - Invalid threshold values
    - Missing Claude API key when a corrector is requested
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_exception: Optional[Exception] = None,
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key

        super().__init__(
            message=message,
            stage="configuration",
            details=details,
            original_exception=original_exception,
        )


class CorrectorError(HandoffEngineError):
    """
    Exception raised by a corrector when it cannot produce a payload

    Common causes:
    - HTTP errors or timeouts from the text-generation API
    - Responses that are not a JSON object
    """

    def __init__(
        self,
        message: str,
        variant: Optional[str] = None,
        status_code: Optional[int] = None,
        original_exception: Optional[Exception] = None,
    ):
        details: dict[str, Any] = {}
        if variant:
            details["variant"] = variant
        if status_code is not None:
            details["status_code"] = status_code

        super().__init__(
            message=message,
            stage="correction",
            details=details,
            original_exception=original_exception,
        )


class PipelineHaltedError(HandoffEngineError):
    """Raised when a payload is submitted to a pipeline that already halted"""

    def __init__(self, trace_id: Optional[str], halted_at: str):
        super().__init__(
            message=f"Pipeline halted at {halted_at}; no further handoffs accepted",
            stage="pipeline",
            details={"trace_id": trace_id, "halted_at": halted_at},
        )


class StageOrderError(HandoffEngineError):
    """Raised when a handoff is submitted out of pipeline order"""

    def __init__(self, expected: Optional[str], received: str):
        expected_text = expected or "no further handoffs"
        super().__init__(
            message=f"Expected {expected_text}, received {received}",
            stage="pipeline",
            details={"expected": expected, "received": received},
        )
