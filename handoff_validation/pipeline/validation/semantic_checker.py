"""
Semantic Checker

Business rules that a static schema cannot express: the real byte size of the
design HTML, score floors and ceilings, per-client rendering support, and the
completeness, document structure and aggregate size of the final delivery
package. Runs only on structurally valid payloads.
"""
import re
from typing import Optional, Union

import structlog

from handoff_validation.config.settings import ThresholdSettings
from handoff_validation.models.contracts import (
    DeliveryPackage,
    DesignToQualityHandoff,
    EmailClientCompatibility,
    HandoffPayload,
    HandoffVariant,
    QualityToDeliveryHandoff,
)
from handoff_validation.models.domain import HandoffValidationError, RawFailure
from handoff_validation.pipeline.validation.error_classifier import classify
from handoff_validation.pipeline.validation.structural_validator import resolve_variant

logger = structlog.get_logger(__name__)

# Clients every delivered email must render in, keyed by their result field
EMAIL_CLIENTS = (
    ("gmail", "Gmail"),
    ("outlook", "Outlook"),
    ("apple_mail", "Apple Mail"),
    ("yahoo_mail", "Yahoo Mail"),
)

REQUIRED_HTML_ELEMENTS = ("<!DOCTYPE", "<html", "<head", "<body", "<title", "charset")

# Template variables and filler text that must not reach recipients
PLACEHOLDER_PATTERN = re.compile(
    r"\{\{.*?\}\}|placeholder|lorem ipsum|test content", re.IGNORECASE
)


def _utf8_size(text: Optional[str]) -> int:
    return len(text.encode("utf-8")) if text else 0


def unsupported_clients(compatibility: EmailClientCompatibility) -> list[str]:
    """Names of the major email clients the quality tests marked unsupported"""
    return [name for field, name in EMAIL_CLIENTS if not getattr(compatibility, field)]


def missing_html_elements(html: str) -> list[str]:
    """Required document elements absent from a final HTML email"""
    lowered = html.lower()
    return [element for element in REQUIRED_HTML_ELEMENTS if element.lower() not in lowered]


def placeholder_matches(html: str) -> list[str]:
    """Distinct placeholder snippets found in a final HTML email"""
    return sorted({match.group(0) for match in PLACEHOLDER_PATTERN.finditer(html)})


def package_section_sizes(package: DeliveryPackage) -> dict[str, int]:
    """
    Byte size of each section of a delivery package.

    Assets and previews count their declared size_bytes, falling back to the
    UTF-8 size of inline content when no size is declared.
    """
    assets = sum(
        asset.size_bytes or _utf8_size(asset.content) for asset in package.assets
    )
    previews = sum(
        preview.size_bytes or _utf8_size(preview.content)
        for preview in package.preview_files
    )
    documentation = sum(
        _utf8_size(text) for text in package.documentation.model_dump().values()
    )
    return {
        "html": _utf8_size(package.html_email),
        "mjml": _utf8_size(package.mjml_source),
        "assets": assets,
        "documentation": documentation,
        "previews": previews,
    }


def format_kib(size_bytes: Union[int, float]) -> str:
    return f"{size_bytes / 1024:.2f}"


class SemanticChecker:
    """Variant-specific business rule checks"""

    def __init__(self, thresholds: ThresholdSettings):
        self.thresholds = thresholds
        self.logger = logger.bind(component="semantic_checker")

    def check_semantics(
        self, payload: HandoffPayload, variant: Union[HandoffVariant, str]
    ) -> list[HandoffValidationError]:
        """
        Check business rules for a structurally valid payload.

        Args:
            payload: Typed payload returned by the structural validator
            variant: Handoff boundary the payload is crossing

        Returns:
            Classified errors; an empty list means the payload passed
        """
        variant = resolve_variant(variant)

        if variant == HandoffVariant.DESIGN_TO_QUALITY:
            failures = self._check_design_to_quality(payload)
        elif variant == HandoffVariant.QUALITY_TO_DELIVERY:
            failures = self._check_quality_to_delivery(payload)
        else:
            # Content constraints are purely structural
            failures = []

        if failures:
            self.logger.debug(
                "Semantic checks failed",
                variant=variant.value,
                failure_count=len(failures),
            )
        return classify(failures)

    def _check_design_to_quality(
        self, payload: DesignToQualityHandoff
    ) -> list[RawFailure]:
        failures = []

        # Measure the artifact itself; the self-reported file_size_bytes may be stale
        html_bytes = _utf8_size(payload.email_package.html_content)
        limit = self.thresholds.max_html_size_bytes
        if html_bytes > limit:
            failures.append(
                RawFailure(
                    field="email_package.html_content",
                    code="size_exceeded",
                    message=(
                        f"HTML is {html_bytes} bytes, over the {limit} byte "
                        f"({self.thresholds.max_html_size_kb} KiB) limit"
                    ),
                    current_value=html_bytes,
                    expected_value=limit,
                )
            )

        return failures

    def _check_quality_to_delivery(
        self, payload: QualityToDeliveryHandoff
    ) -> list[RawFailure]:
        failures = self._check_scores(payload)

        if payload.quality_package.validation_status == "failed":
            failures.append(
                RawFailure(
                    field="quality_package.validation_status",
                    code="rejected_status",
                    message="Quality validation reported status 'failed'",
                    current_value="failed",
                    expected_value="passed",
                )
            )

        failures.extend(self._check_package_completeness(payload.delivery_package))
        failures.extend(self._check_package_size(payload.delivery_package))
        return failures

    def _check_scores(self, payload: QualityToDeliveryHandoff) -> list[RawFailure]:
        t = self.thresholds
        failures = []

        floors = [
            (
                "quality_package.quality_score",
                payload.quality_package.quality_score,
                t.min_quality_score,
                "Quality score",
            ),
            (
                "test_results.email_client_compatibility.compatibility_score",
                payload.test_results.email_client_compatibility.compatibility_score,
                t.min_compatibility_score,
                "Email client compatibility score",
            ),
            (
                "accessibility_report.score",
                payload.accessibility_report.score,
                t.min_accessibility_score,
                "Accessibility score",
            ),
        ]
        for field, value, minimum, label in floors:
            if value < minimum:
                failures.append(
                    RawFailure(
                        field=field,
                        code="below_minimum",
                        message=f"{label} {value:g} is below the minimum of {minimum:g}",
                        current_value=value,
                        expected_value=minimum,
                    )
                )

        unsupported = unsupported_clients(payload.test_results.email_client_compatibility)
        if unsupported:
            failures.append(
                RawFailure(
                    field="test_results.email_client_compatibility",
                    code="unsupported_client",
                    message=f"Unsupported email clients: {', '.join(unsupported)}",
                    current_value=unsupported,
                    expected_value=[],
                )
            )

        spam_score = payload.spam_analysis.spam_score
        if spam_score > t.max_spam_score:
            failures.append(
                RawFailure(
                    field="spam_analysis.spam_score",
                    code="above_maximum",
                    message=f"Spam score {spam_score:g} exceeds the maximum of {t.max_spam_score:g}",
                    current_value=spam_score,
                    expected_value=t.max_spam_score,
                )
            )

        return failures

    def _check_final_html(self, html: str) -> list[RawFailure]:
        field = "delivery_package.html_email"
        stripped = html.strip()

        if not stripped:
            return [
                RawFailure(
                    field=field,
                    code="missing_section",
                    message="Delivery package has no HTML email",
                    current_value=html,
                    expected_value="HTML document",
                )
            ]

        failures = []
        min_length = self.thresholds.min_html_email_length
        if len(stripped) < min_length:
            failures.append(
                RawFailure(
                    field=field,
                    code="html_too_short",
                    message=(
                        f"HTML email has {len(stripped)} characters, "
                        f"at least {min_length} required"
                    ),
                    current_value=len(stripped),
                    expected_value=min_length,
                )
            )

        missing = missing_html_elements(html)
        if missing:
            failures.append(
                RawFailure(
                    field=field,
                    code="html_structure",
                    message=f"HTML email is missing required elements: {', '.join(missing)}",
                    current_value=missing,
                    expected_value=list(REQUIRED_HTML_ELEMENTS),
                )
            )

        placeholders = placeholder_matches(html)
        if placeholders:
            failures.append(
                RawFailure(
                    field=field,
                    code="placeholder_content",
                    message=f"HTML email contains placeholder content: {', '.join(placeholders)}",
                    current_value=placeholders,
                    expected_value=[],
                )
            )

        return failures

    def _check_package_completeness(self, package: DeliveryPackage) -> list[RawFailure]:
        t = self.thresholds
        failures = self._check_final_html(package.html_email)

        present_types = {preview.type for preview in package.preview_files}
        for preview_type in t.required_preview_types:
            if preview_type not in present_types:
                failures.append(
                    RawFailure(
                        field="delivery_package.preview_files",
                        code="missing_preview",
                        message=f"No {preview_type} preview in the delivery package",
                        current_value=sorted(present_types),
                        expected_value=preview_type,
                    )
                )

        documentation = package.documentation.model_dump()
        for section in t.required_documentation_sections:
            text = (documentation.get(section) or "").strip()
            field = f"delivery_package.documentation.{section}"
            if not text:
                failures.append(
                    RawFailure(
                        field=field,
                        code="missing_section",
                        message=f"Documentation section '{section}' is missing",
                        current_value=0,
                        expected_value=t.min_documentation_length,
                    )
                )
            elif len(text) < t.min_documentation_length:
                failures.append(
                    RawFailure(
                        field=field,
                        code="documentation_too_short",
                        message=(
                            f"Documentation section '{section}' has {len(text)} characters, "
                            f"at least {t.min_documentation_length} required"
                        ),
                        current_value=len(text),
                        expected_value=t.min_documentation_length,
                    )
                )

        return failures

    def _check_package_size(self, package: DeliveryPackage) -> list[RawFailure]:
        total_bytes = sum(package_section_sizes(package).values())
        limit = self.thresholds.max_package_size_bytes
        if total_bytes <= limit:
            return []

        return [
            RawFailure(
                field="delivery_package",
                code="size_exceeded",
                message=(
                    f"Delivery package is {format_kib(total_bytes)} KiB, over the "
                    f"{self.thresholds.max_package_size_kb} KiB limit"
                ),
                current_value=total_bytes,
                expected_value=limit,
            )
        ]


__all__ = [
    "EMAIL_CLIENTS",
    "REQUIRED_HTML_ELEMENTS",
    "SemanticChecker",
    "format_kib",
    "missing_html_elements",
    "package_section_sizes",
    "placeholder_matches",
    "unsupported_clients",
]
