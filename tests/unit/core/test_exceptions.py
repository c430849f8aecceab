"""
Unit tests for the engine exception hierarchy.
"""
import pytest

from handoff_validation.core.exceptions import (
    ConfigurationError,
    CorrectorError,
    HandoffEngineError,
    PipelineHaltedError,
    StageOrderError,
    UnknownVariantError,
)


class TestHandoffEngineError:
    def test_stage_prefix(self):
        error = HandoffEngineError("boom", stage="validation")

        assert str(error) == "[VALIDATION] boom"
        assert error.message == "boom"

    def test_to_dict(self):
        cause = RuntimeError("root cause")
        error = HandoffEngineError("boom", details={"a": 1}, original_exception=cause)

        assert error.to_dict() == {
            "error_type": "HandoffEngineError",
            "message": "boom",
            "stage": None,
            "details": {"a": 1},
            "original_exception": "root cause",
        }


class TestSubclasses:
    @pytest.mark.parametrize(
        "error,stage",
        [
            (UnknownVariantError("x"), "validation"),
            (ConfigurationError("missing key", config_key="CLAUDE_API_KEY"), "configuration"),
            (CorrectorError("HTTP 500", status_code=500), "correction"),
            (PipelineHaltedError(None, "content-to-design"), "pipeline"),
            (StageOrderError(None, "content-to-design"), "pipeline"),
        ],
    )
    def test_hierarchy(self, error, stage):
        assert isinstance(error, HandoffEngineError)
        assert error.stage == stage

    def test_unknown_variant_details(self):
        error = UnknownVariantError("design-to-delivery")

        assert error.details == {"variant": "'design-to-delivery'"}
        assert "design-to-delivery" in error.message

    def test_stage_order_after_completion(self):
        error = StageOrderError(None, "content-to-design")

        assert error.message == "Expected no further handoffs, received content-to-design"

    def test_corrector_error_details(self):
        error = CorrectorError("HTTP 429", variant="design-to-quality", status_code=429)

        assert error.details == {"variant": "design-to-quality", "status_code": 429}
