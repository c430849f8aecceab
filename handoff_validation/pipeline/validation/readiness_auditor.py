"""
Package Readiness Auditor

Last gate before a delivery package leaves the system. Builds an integrity
report of the package files, condenses the quality scores and lists every
blocker so an operator can fix all of them in one pass. A not-ready verdict is
final: nothing in the engine overrides it.
"""
import structlog

from handoff_validation.config.settings import ThresholdSettings
from handoff_validation.models.contracts import QualityToDeliveryHandoff
from handoff_validation.models.domain import (
    PackageIntegrityReport,
    QualityMetrics,
    ReadinessReport,
)
from handoff_validation.pipeline.validation.semantic_checker import (
    format_kib,
    missing_html_elements,
    package_section_sizes,
    placeholder_matches,
    unsupported_clients,
)

logger = structlog.get_logger(__name__)

ALL_PREVIEW_TYPES = ("desktop", "mobile", "dark_mode", "plain_text")

MIN_LOAD_TIME_SCORE = 80


def _kib(size_bytes: int) -> float:
    return round(size_bytes / 1024, 2)


class PackageReadinessAuditor:
    """Go/no-go audit of a Quality -> Delivery payload"""

    def __init__(self, thresholds: ThresholdSettings):
        self.thresholds = thresholds
        self.logger = logger.bind(component="readiness_auditor")

    def generate_integrity_report(
        self, payload: QualityToDeliveryHandoff
    ) -> PackageIntegrityReport:
        """File counts and per-section sizes of the delivery package"""
        package = payload.delivery_package
        sizes = package_section_sizes(package)
        total_bytes = sum(sizes.values())

        documentation = package.documentation.model_dump()
        present_docs = [name for name, text in documentation.items() if text.strip()]
        total_files = (
            (1 if sizes["html"] else 0)
            + (1 if sizes["mjml"] else 0)
            + len(package.assets)
            + len(present_docs)
            + len(package.preview_files)
        )

        missing_files = []
        if not package.html_email.strip():
            missing_files.append("html_email")
        for section in self.thresholds.required_documentation_sections:
            if not (documentation.get(section) or "").strip():
                missing_files.append(f"documentation/{section}")
        present_previews = {preview.type for preview in package.preview_files}
        for preview_type in self.thresholds.required_preview_types:
            if preview_type not in present_previews:
                missing_files.append(f"preview/{preview_type}")

        return PackageIntegrityReport(
            total_files=total_files,
            total_size_bytes=total_bytes,
            total_size_kb=_kib(total_bytes),
            html_size_kb=_kib(sizes["html"]),
            mjml_size_kb=_kib(sizes["mjml"]),
            assets_size_kb=_kib(sizes["assets"]),
            documentation_size_kb=_kib(sizes["documentation"]),
            previews_size_kb=_kib(sizes["previews"]),
            size_limit_kb=self.thresholds.max_package_size_kb,
            within_size_limit=total_bytes <= self.thresholds.max_package_size_bytes,
            missing_files=missing_files,
        )

    def calculate_quality_metrics(self, payload: QualityToDeliveryHandoff) -> QualityMetrics:
        """Condense the quality section into comparable 0-100 style scores"""
        performance = payload.performance_analysis
        return QualityMetrics(
            overall_score=payload.quality_package.quality_score,
            html_quality=85 if payload.test_results.html_validation.w3c_compliant else 45,
            accessibility_score=payload.accessibility_report.score,
            compatibility_score=payload.test_results.email_client_compatibility.compatibility_score,
            performance_score=round(
                (
                    performance.load_time_score
                    + performance.file_size_score
                    + performance.optimization_score
                )
                / 3
            ),
            # Inverted so that higher is better, like the other scores
            spam_risk_score=10 - payload.spam_analysis.spam_score,
        )

    def is_ready_for_delivery(self, payload: QualityToDeliveryHandoff) -> ReadinessReport:
        """
        Decide whether the package can be delivered.

        Args:
            payload: Structurally valid Quality -> Delivery payload

        Returns:
            ReadinessReport listing every blocker and recommendation
        """
        integrity = self.generate_integrity_report(payload)
        metrics = self.calculate_quality_metrics(payload)

        blockers = self._collect_blockers(payload, integrity)
        recommendations = self._collect_recommendations(payload, integrity)

        ready = not blockers
        if ready:
            summary = (
                f"Package ready for delivery ({integrity.total_files} files, "
                f"{integrity.total_size_kb:.2f} KiB)"
            )
        else:
            summary = f"Package NOT ready: {len(blockers)} blocking issue(s)"

        self.logger.info(
            "Readiness audit completed",
            trace_id=payload.trace_id,
            ready=ready,
            blocker_count=len(blockers),
            total_size_kb=integrity.total_size_kb,
        )

        return ReadinessReport(
            ready=ready,
            blockers=blockers,
            recommendations=recommendations,
            summary=summary,
            integrity=integrity,
            quality_metrics=metrics,
        )

    def _collect_blockers(
        self, payload: QualityToDeliveryHandoff, integrity: PackageIntegrityReport
    ) -> list[str]:
        t = self.thresholds
        package = payload.delivery_package
        blockers = []

        html = package.html_email
        if len(html.strip()) < t.min_html_email_length:
            blockers.append("HTML email is missing or truncated")
        if html.strip():
            missing_elements = missing_html_elements(html)
            if missing_elements:
                blockers.append(
                    f"HTML email is missing required elements: {', '.join(missing_elements)}"
                )
            if placeholder_matches(html):
                blockers.append("HTML email contains placeholder content")

        if not integrity.within_size_limit:
            overage_bytes = integrity.total_size_bytes - t.max_package_size_bytes
            blockers.append(
                f"Package size {format_kib(integrity.total_size_bytes)} KiB exceeds the "
                f"{t.max_package_size_kb} KiB limit by {format_kib(overage_bytes)} KiB"
            )

        quality_score = payload.quality_package.quality_score
        if quality_score < t.min_quality_score:
            blockers.append(
                f"Quality score {quality_score:g} is below the minimum of {t.min_quality_score:g}"
            )

        if payload.quality_package.validation_status == "failed":
            blockers.append("Quality validation status is 'failed'")

        compatibility = payload.test_results.email_client_compatibility.compatibility_score
        if compatibility < t.min_compatibility_score:
            blockers.append(
                f"Email client compatibility {compatibility:g}% is below "
                f"{t.min_compatibility_score:g}%"
            )

        unsupported = unsupported_clients(payload.test_results.email_client_compatibility)
        if unsupported:
            blockers.append(f"Unsupported email clients: {', '.join(unsupported)}")

        accessibility = payload.accessibility_report.score
        if accessibility < t.min_accessibility_score:
            blockers.append(
                f"Accessibility score {accessibility:g} is below the minimum of "
                f"{t.min_accessibility_score:g}"
            )

        if not payload.accessibility_report.wcag_aa_compliant:
            blockers.append("WCAG AA compliance required")

        spam_score = payload.spam_analysis.spam_score
        if spam_score > t.max_spam_score:
            blockers.append(
                f"Spam score {spam_score:g} exceeds the maximum of {t.max_spam_score:g}"
            )

        present_previews = {preview.type for preview in package.preview_files}
        for preview_type in t.required_preview_types:
            if preview_type not in present_previews:
                blockers.append(f"Missing {preview_type} preview")

        documentation = package.documentation.model_dump()
        for section in t.required_documentation_sections:
            text = (documentation.get(section) or "").strip()
            if len(text) < t.min_documentation_length:
                blockers.append(
                    f"Documentation section '{section}' is missing or shorter than "
                    f"{t.min_documentation_length} characters"
                )

        return blockers

    def _collect_recommendations(
        self, payload: QualityToDeliveryHandoff, integrity: PackageIntegrityReport
    ) -> list[str]:
        t = self.thresholds
        package = payload.delivery_package
        recommendations = []

        if not package.mjml_source:
            recommendations.append("Add the MJML source for future edits")

        present_previews = {preview.type for preview in package.preview_files}
        missing_previews = [p for p in ALL_PREVIEW_TYPES if p not in present_previews]
        if missing_previews:
            recommendations.append(
                f"Add more preview files ({', '.join(missing_previews)})"
            )

        warning_limit = t.max_package_size_bytes * t.size_warning_ratio
        if integrity.within_size_limit and integrity.total_size_bytes > warning_limit:
            recommendations.append(
                f"Package uses over {t.size_warning_ratio:.0%} of the size limit; "
                "optimize for headroom"
            )

        if payload.performance_analysis.load_time_score < MIN_LOAD_TIME_SCORE:
            recommendations.append("Improve load time optimization")

        html_warnings = payload.test_results.html_validation.warnings
        if html_warnings:
            recommendations.append(
                f"Address {len(html_warnings)} HTML validation warning(s)"
            )

        return recommendations


__all__ = [
    "ALL_PREVIEW_TYPES",
    "PackageReadinessAuditor",
]
