"""
Structural Validator

Checks a raw payload against the contract of its handoff variant: presence,
types, string lengths, enum membership, numeric ranges and UUID/timestamp
formats. Pydantic collects every violation in a single pass, so the caller
always sees the complete error list.
"""
import re
from typing import Any, Optional, Union

from pydantic import ValidationError

from handoff_validation.core.exceptions import UnknownVariantError
from handoff_validation.models.contracts import (
    UUID_PATTERN,
    VARIANT_CONTRACTS,
    HandoffVariant,
)
from handoff_validation.models.domain import RawFailure, StructuralResult
from handoff_validation.pipeline.validation.error_classifier import classify

# Context keys Pydantic uses for the violated bound, in lookup order
_EXPECTED_CONTEXT_KEYS = (
    "min_length",
    "max_length",
    "ge",
    "gt",
    "le",
    "lt",
    "pattern",
    "expected",
)

_UUID_RE = re.compile(UUID_PATTERN)


def resolve_variant(variant: Union[HandoffVariant, str]) -> HandoffVariant:
    """
    Turn a variant tag into a HandoffVariant.

    Raises:
        UnknownVariantError: If the tag names no known handoff boundary
    """
    if isinstance(variant, HandoffVariant):
        return variant
    try:
        return HandoffVariant(variant)
    except ValueError as e:
        raise UnknownVariantError(str(variant)) from e


def valid_trace_id(raw: Any) -> Optional[str]:
    """trace_id of a raw payload, or None when absent or not a UUID"""
    trace_id = raw.get("trace_id") if isinstance(raw, dict) else None
    if isinstance(trace_id, str) and _UUID_RE.match(trace_id):
        return trace_id
    return None


def _expected_value(ctx: Optional[dict[str, Any]]) -> Optional[Any]:
    if not ctx:
        return None
    for key in _EXPECTED_CONTEXT_KEYS:
        if key in ctx:
            return ctx[key]
    return None


def failures_from_pydantic(exc: ValidationError) -> list[RawFailure]:
    """Convert Pydantic error entries into raw failures"""
    failures = []
    for entry in exc.errors():
        error_type = entry["type"]
        failures.append(
            RawFailure(
                field=".".join(str(part) for part in entry["loc"]) or "payload",
                code=error_type,
                message=entry["msg"],
                # For a missing field Pydantic reports the parent object as input
                current_value=None if error_type == "missing" else entry.get("input"),
                expected_value=_expected_value(entry.get("ctx")),
            )
        )
    return failures


def validate_structure(raw: Any, variant: Union[HandoffVariant, str]) -> StructuralResult:
    """
    Validate a raw payload against its variant contract.

    Args:
        raw: Untyped payload as supplied by the producing stage
        variant: Handoff boundary the payload is crossing

    Returns:
        StructuralResult with either the typed payload or every violation found

    Raises:
        UnknownVariantError: If the variant is not recognized
    """
    variant = resolve_variant(variant)
    contract = VARIANT_CONTRACTS[variant]

    if not isinstance(raw, dict):
        failure = RawFailure(
            field="payload",
            code="model_type",
            message=f"Payload must be an object, got {type(raw).__name__}",
            current_value=type(raw).__name__,
            expected_value="object",
        )
        return StructuralResult(errors=classify([failure]))

    try:
        payload = contract.model_validate(raw)
    except ValidationError as e:
        return StructuralResult(errors=classify(failures_from_pydantic(e)))

    return StructuralResult(payload=payload)


__all__ = [
    "failures_from_pydantic",
    "resolve_variant",
    "valid_trace_id",
    "validate_structure",
]
