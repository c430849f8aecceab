"""
Error Classifier

Maps raw structural and semantic failures onto the handoff error taxonomy.
Each failure gets a kind (what went wrong) and a severity (how blocking it is).
Severity is decided by the leaf field first and by the kind second, so an error
on a critical field is always critical no matter what produced it.
"""
from typing import Any, Iterable

from handoff_validation.models.domain import (
    ErrorKind,
    HandoffValidationError,
    RawFailure,
    Severity,
)

# Fields whose failure always blocks the handoff
CRITICAL_FIELDS = frozenset({"trace_id", "timestamp", "quality_score", "html_content"})

# Core message fields: an empty one makes the email meaningless
CORE_MESSAGE_FIELDS = frozenset({"subject", "body"})

# Codes emitted by the semantic checker
SEMANTIC_CODES: dict[str, ErrorKind] = {
    "below_minimum": ErrorKind.INVALID_VALUE,
    "above_maximum": ErrorKind.INVALID_VALUE,
    "rejected_status": ErrorKind.INVALID_VALUE,
    "trace_mismatch": ErrorKind.INVALID_VALUE,
    "unsupported_client": ErrorKind.INVALID_VALUE,
    "placeholder_content": ErrorKind.INVALID_VALUE,
    "html_structure": ErrorKind.FORMAT_ERROR,
    "html_too_short": ErrorKind.SIZE_LIMIT,
    "size_exceeded": ErrorKind.SIZE_LIMIT,
    "missing_section": ErrorKind.MISSING,
    "missing_preview": ErrorKind.MISSING,
    "documentation_too_short": ErrorKind.MISSING,
}

_MIN_LENGTH_CODES = frozenset({"string_too_short", "too_short"})

_SIZE_CODES = frozenset(
    {
        "string_too_short",
        "string_too_long",
        "too_short",
        "too_long",
        "greater_than",
        "greater_than_equal",
        "less_than",
        "less_than_equal",
    }
)

_FORMAT_CODES = frozenset(
    {
        "string_pattern_mismatch",
        "timestamp_format",
        "uuid_parsing",
        "uuid_type",
        "url_parsing",
        "url_scheme",
        "url_syntax_violation",
        "datetime_parsing",
        "datetime_from_date_parsing",
    }
)


def leaf_field(field: str) -> str:
    """Last non-index segment of a dotted field path"""
    for part in reversed(field.split(".")):
        if not part.isdigit():
            return part
    return field


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def classify_kind(failure: RawFailure) -> ErrorKind:
    """Map a failure code to an error kind"""
    code = failure.code

    if code in SEMANTIC_CODES:
        return SEMANTIC_CODES[code]
    if code == "missing":
        return ErrorKind.MISSING
    # An empty value failing a minimum length is absent content, not a bound
    if code in _MIN_LENGTH_CODES and _is_empty(failure.current_value):
        return ErrorKind.MISSING
    if code in _FORMAT_CODES:
        return ErrorKind.FORMAT_ERROR
    if code in _SIZE_CODES:
        return ErrorKind.SIZE_LIMIT
    if code.endswith("_type") or code.endswith("_parsing"):
        return ErrorKind.INVALID_TYPE
    return ErrorKind.INVALID_VALUE


def classify_severity(field: str, kind: ErrorKind) -> Severity:
    """Severity from the leaf field, then from the kind"""
    leaf = leaf_field(field)

    if leaf in CRITICAL_FIELDS:
        return Severity.CRITICAL
    if kind == ErrorKind.MISSING and leaf in CORE_MESSAGE_FIELDS:
        return Severity.CRITICAL
    if kind in (ErrorKind.INVALID_TYPE, ErrorKind.MISSING):
        return Severity.MAJOR
    return Severity.MINOR


def classify(raw_failures: Iterable[RawFailure]) -> list[HandoffValidationError]:
    """
    Classify raw failures into typed validation errors.

    Args:
        raw_failures: Failures from structural or semantic checking

    Returns:
        One classified error per failure, in input order
    """
    errors = []
    for failure in raw_failures:
        kind = classify_kind(failure)
        errors.append(
            HandoffValidationError(
                field=failure.field,
                kind=kind,
                message=failure.message,
                current_value=failure.current_value,
                expected_value=failure.expected_value,
                severity=classify_severity(failure.field, kind),
            )
        )
    return errors


__all__ = [
    "CRITICAL_FIELDS",
    "classify",
    "classify_kind",
    "classify_severity",
    "leaf_field",
]
