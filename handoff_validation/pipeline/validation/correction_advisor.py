"""
Correction Advisor

Turns classified validation errors into repair suggestions. Every suggestion
carries a human-readable fix from a static per-variant table and a prompt for
an external text-correction call. This module formats text only: it performs no
I/O and never trusts the corrector, whose output is always re-validated.
"""
from typing import Any, Optional, Union

from handoff_validation.models.contracts import HandoffVariant
from handoff_validation.models.domain import (
    CorrectionSuggestion,
    HandoffValidationError,
    Priority,
    Severity,
)
from handoff_validation.pipeline.validation.structural_validator import resolve_variant

SEVERITY_PRIORITY = {
    Severity.CRITICAL: Priority.HIGH,
    Severity.MAJOR: Priority.MEDIUM,
    Severity.MINOR: Priority.LOW,
}

_PROVENANCE_GUIDANCE = {
    "trace_id": "trace_id must be the pipeline UUID assigned at the first handoff",
    "timestamp": "timestamp must be an ISO-8601 instant such as 2024-05-01T10:00:00Z",
}

FIX_GUIDANCE: dict[HandoffVariant, dict[str, str]] = {
    HandoffVariant.CONTENT_TO_DESIGN: {
        **_PROVENANCE_GUIDANCE,
        "content_package.complete_content.subject": "Subject must be 1-100 characters",
        "content_package.complete_content.preheader": "Preheader must be 1-150 characters",
        "content_package.complete_content.body": "Body must be 10-5000 characters",
        "content_package.complete_content.cta": "CTA must be 1-50 characters",
        "content_package.content_metadata.language": "Language must be one of: ru, en",
        "design_requirements.template_type": (
            "Template type must be one of: promotional, informational, newsletter, transactional"
        ),
        "design_requirements.visual_priority": (
            "Visual priority must be one of: text-heavy, image-heavy, balanced"
        ),
        "campaign_context.urgency_level": "Urgency must be one of: low, medium, high, critical",
    },
    HandoffVariant.DESIGN_TO_QUALITY: {
        **_PROVENANCE_GUIDANCE,
        "email_package.html_content": "HTML must be valid, longer than 100 characters and at most 100 KiB",
        "email_package.mjml_source": "MJML source must be at least 50 characters",
        "rendering_metadata.file_size_bytes": "File size must be at most 100 KiB (102400 bytes)",
        "rendering_metadata.render_time_ms": "Render time must be at most 1000 ms",
        "design_artifacts.performance_metrics.total_size_kb": "Total size must be at most 100 KiB",
    },
    HandoffVariant.QUALITY_TO_DELIVERY: {
        **_PROVENANCE_GUIDANCE,
        "quality_package.quality_score": "Quality score must be at least 70",
        "quality_package.validation_status": "Resolve the failed quality checks before delivery",
        "test_results.email_client_compatibility.compatibility_score": (
            "Email client compatibility must be at least 95%"
        ),
        "test_results.email_client_compatibility": (
            "Make the email render in Gmail, Outlook, Apple Mail and Yahoo Mail: "
            "table layout, inline CSS, no flexbox or grid"
        ),
        "accessibility_report.score": "Accessibility score must be at least 80 (WCAG AA)",
        "spam_analysis.spam_score": "Spam score must be at most 3",
        "delivery_package": "Reduce the delivery package to at most 600 KiB",
        "delivery_package.html_email": (
            "Include the final HTML email as a complete document with DOCTYPE, html, head, "
            "title, charset and body, and replace every placeholder with real content"
        ),
        "delivery_package.preview_files": "Provide desktop and mobile previews",
    },
}

_FALLBACK_GUIDANCE = {
    HandoffVariant.CONTENT_TO_DESIGN: "Fix field {field} to meet the content contract",
    HandoffVariant.DESIGN_TO_QUALITY: "Optimize field {field} to meet the design limits",
    HandoffVariant.QUALITY_TO_DELIVERY: "Improve field {field} to meet the quality standards",
}

_PROMPT_HEADERS = {
    HandoffVariant.CONTENT_TO_DESIGN: (
        "FIX CONTENT: field \"{field}\" violates the content contract.\n"
        "Produce valid email content that satisfies:\n"
        "- Subject: 1-100 characters, compelling\n"
        "- Preheader: 1-150 characters, complements the subject\n"
        "- Body: 10-5000 characters, structured text\n"
        "- CTA: 1-50 characters, a call to action"
    ),
    HandoffVariant.DESIGN_TO_QUALITY: (
        "OPTIMIZE DESIGN: field \"{field}\" exceeds the design limits.\n"
        "Optimize while keeping the design intact:\n"
        "- HTML: valid markup under 100 KiB\n"
        "- CSS: inline styles, minified\n"
        "- Images: optimized sizes\n"
        "- Render time: under 1000 ms"
    ),
    HandoffVariant.QUALITY_TO_DELIVERY: (
        "IMPROVE QUALITY: field \"{field}\" does not meet the quality standards.\n"
        "Requirements:\n"
        "- Quality score at least 70\n"
        "- Email client compatibility at least 95%\n"
        "- Renders in Gmail, Outlook, Apple Mail and Yahoo Mail\n"
        "- Complete HTML document with no placeholder text\n"
        "- Accessibility score at least 80 (WCAG AA)\n"
        "- Spam score at most 3"
    ),
}


def _dig(data: Any, *path: str) -> Optional[Any]:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def campaign_context_label(original_payload: Any) -> str:
    """Campaign topic, or the original subject when there is no campaign context"""
    topic = _dig(original_payload, "campaign_context", "topic")
    if topic:
        return f"Campaign topic: {topic}"

    for section in ("content_package", "original_content"):
        subject = _dig(original_payload, section, "complete_content", "subject")
        if subject:
            return f"Original subject: {subject}"

    return "Campaign topic: not specified"


def _constraint(error: HandoffValidationError) -> str:
    if error.expected_value is not None:
        return f"{error.message} (expected: {error.expected_value})"
    return error.message


def suggest(
    errors: list[HandoffValidationError],
    original_payload: Any,
    variant: Union[HandoffVariant, str],
) -> list[CorrectionSuggestion]:
    """
    Build one correction suggestion per validation error.

    Args:
        errors: Classified errors from the structural or semantic layer
        original_payload: Raw payload the errors were found in
        variant: Handoff boundary the payload is crossing

    Returns:
        Suggestions in the same order as the errors
    """
    variant = resolve_variant(variant)
    guidance = FIX_GUIDANCE[variant]
    context = campaign_context_label(original_payload)

    suggestions = []
    for error in errors:
        header = _PROMPT_HEADERS[variant].format(field=error.field)
        prompt = (
            f"{header}\n"
            f"Violated constraint: {_constraint(error)}\n"
            f"{context}\n"
            "Return ONLY the corrected payload as a JSON object."
        )
        suggestions.append(
            CorrectionSuggestion(
                field=error.field,
                issue=error.message,
                suggestion=guidance.get(error.field)
                or _FALLBACK_GUIDANCE[variant].format(field=error.field),
                correction_prompt=prompt,
                priority=SEVERITY_PRIORITY[error.severity],
            )
        )
    return suggestions


__all__ = [
    "FIX_GUIDANCE",
    "SEVERITY_PRIORITY",
    "campaign_context_label",
    "suggest",
]
