"""
Schema contracts for the three handoff boundaries of the email pipeline.

Each variant is a frozen Pydantic model validated in strict mode: no silent
coercion of "5" into 5, so type mismatches surface as errors instead of being
papered over. Intrinsic bounds (string lengths, enum membership, numeric ranges,
UUID and timestamp format) live here; business thresholds that need the whole
payload live in the semantic checker.
"""
import re
from datetime import datetime
from enum import Enum
from typing import Annotated, ClassVar, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic_core import PydanticCustomError


class HandoffVariant(str, Enum):
    """Stage boundaries a payload can cross"""

    CONTENT_TO_DESIGN = "content-to-design"
    DESIGN_TO_QUALITY = "design-to-quality"
    QUALITY_TO_DELIVERY = "quality-to-delivery"

    @property
    def producing_agent(self) -> str:
        """Agent that emits payloads of this variant"""
        return _PRODUCING_AGENTS[self]


_PRODUCING_AGENTS = {
    HandoffVariant.CONTENT_TO_DESIGN: "content-specialist",
    HandoffVariant.DESIGN_TO_QUALITY: "design-specialist",
    HandoffVariant.QUALITY_TO_DELIVERY: "quality-specialist",
}

UUID_PATTERN = (
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
ISO_INSTANT_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$"
)

HttpUrl = Annotated[str, StringConstraints(pattern=r"^https?://\S+$")]
Score = Annotated[float, Field(ge=0, le=100)]


def parse_iso_instant(value: str) -> datetime:
    """
    Parse an ISO-8601 instant with an explicit offset or Z suffix.

    Raises:
        ValueError: If the value is not a complete, offset-qualified instant
    """
    match = ISO_INSTANT_PATTERN.match(value)
    if not match:
        raise ValueError(f"Not an ISO-8601 instant: {value!r}")

    normalized = value
    fraction = match.group(1)
    if fraction:
        # fromisoformat wants exactly microsecond precision on older interpreters
        digits = (fraction[1:] + "000000")[:6]
        normalized = normalized.replace(fraction, "." + digits, 1)
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"

    return datetime.fromisoformat(normalized)


class ContractModel(BaseModel):
    """Common configuration for every contract section"""

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")


class ProvenanceMixin(ContractModel):
    """trace_id and timestamp shared by all three handoff variants"""

    trace_id: str = Field(..., pattern=UUID_PATTERN, description="Pipeline correlation id")
    timestamp: str = Field(..., description="ISO-8601 instant of the handoff")

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: str) -> str:
        """Reject anything that is not an offset-qualified ISO-8601 instant"""
        try:
            parse_iso_instant(v)
        except ValueError:
            raise PydanticCustomError(
                "timestamp_format",
                "timestamp must be an ISO-8601 instant such as 2024-05-01T10:00:00Z",
            )
        return v


# ============================================================================
# Content → Design
# ============================================================================


class CompleteContent(ContractModel):
    """The four text parts of the email"""

    subject: str = Field(..., min_length=1, max_length=100)
    preheader: str = Field(..., min_length=1, max_length=150)
    body: str = Field(..., min_length=10, max_length=5000)
    cta: str = Field(..., min_length=1, max_length=50)


class ContentMetadata(ContractModel):
    language: Literal["ru", "en"]
    tone: str = Field(..., min_length=1)
    word_count: int = Field(..., gt=0)
    reading_time: float = Field(..., gt=0, description="Estimated minutes")


class BrandGuidelines(ContractModel):
    voice_tone: str = Field(..., min_length=1)
    key_messages: list[str] = Field(..., min_length=1)
    compliance_notes: Optional[list[str]] = None


class ContentPackage(ContractModel):
    """Content section produced by the content specialist"""

    complete_content: CompleteContent
    content_metadata: ContentMetadata
    brand_guidelines: BrandGuidelines


class DesignRequirements(ContractModel):
    template_type: Literal["promotional", "informational", "newsletter", "transactional"]
    visual_priority: Literal["text-heavy", "image-heavy", "balanced"]
    layout_preferences: list[str]
    color_scheme: Optional[str] = None


class CampaignContext(ContractModel):
    topic: str = Field(..., min_length=1)
    target_audience: str = Field(..., min_length=1)
    destination: Optional[str] = None
    origin: Optional[str] = None
    urgency_level: Literal["low", "medium", "high", "critical"]


class ContentToDesignHandoff(ProvenanceMixin):
    """Payload handed from the content specialist to the design specialist"""

    variant: ClassVar[HandoffVariant] = HandoffVariant.CONTENT_TO_DESIGN

    content_package: ContentPackage
    design_requirements: DesignRequirements
    campaign_context: CampaignContext


# ============================================================================
# Design → Quality
# ============================================================================


class EmailPackage(ContractModel):
    html_content: str = Field(..., min_length=100)
    mjml_source: str = Field(..., min_length=50)
    inline_css: str
    asset_urls: list[HttpUrl]


class RenderingMetadata(ContractModel):
    template_type: str = Field(..., min_length=1)
    file_size_bytes: int = Field(..., gt=0, le=102400)
    render_time_ms: float = Field(..., gt=0, le=1000)
    optimization_applied: list[str]


class PerformanceMetrics(ContractModel):
    css_rules_count: int = Field(..., ge=0)
    images_count: int = Field(..., ge=0)
    total_size_kb: float = Field(..., gt=0, le=100)


class DesignArtifacts(ContractModel):
    performance_metrics: PerformanceMetrics
    accessibility_features: list[str]
    responsive_breakpoints: list[str]
    dark_mode_support: bool


class DesignToQualityHandoff(ProvenanceMixin):
    """Payload handed from the design specialist to the quality specialist"""

    variant: ClassVar[HandoffVariant] = HandoffVariant.DESIGN_TO_QUALITY

    email_package: EmailPackage
    rendering_metadata: RenderingMetadata
    design_artifacts: DesignArtifacts
    original_content: ContentPackage


# ============================================================================
# Quality → Delivery
# ============================================================================


class QualityPackage(ContractModel):
    validated_html: str = Field(..., min_length=100)
    quality_score: Score
    validation_status: Literal["passed", "passed_with_warnings", "failed"]
    optimized_assets: list[HttpUrl]


class HtmlValidation(ContractModel):
    w3c_compliant: bool
    errors: list[str]
    warnings: list[str]


class CssValidation(ContractModel):
    valid: bool
    issues: list[str]


class EmailClientCompatibility(ContractModel):
    gmail: bool
    outlook: bool
    apple_mail: bool
    yahoo_mail: bool
    compatibility_score: Score


class QualityTestResults(ContractModel):
    html_validation: HtmlValidation
    css_validation: CssValidation
    email_client_compatibility: EmailClientCompatibility


class AccessibilityReport(ContractModel):
    wcag_aa_compliant: bool
    issues: list[str]
    score: Score


class PerformanceAnalysis(ContractModel):
    load_time_score: Score
    file_size_score: Score
    optimization_score: Score


class SpamAnalysis(ContractModel):
    spam_score: float = Field(..., ge=0, le=10)
    risk_factors: list[str]
    recommendations: list[str]


class AssetFile(ContractModel):
    filename: str = Field(..., min_length=1)
    size_bytes: int = Field(0, ge=0)
    mime_type: str = ""
    optimized: bool = False
    content: Optional[str] = None


class PreviewFile(ContractModel):
    filename: str = Field(..., min_length=1)
    type: Literal["desktop", "mobile", "dark_mode", "plain_text"]
    size_bytes: int = Field(0, ge=0)
    content: Optional[str] = None


class DeliveryDocumentation(ContractModel):
    readme: str = ""
    implementation_guide: str = ""
    testing_notes: str = ""
    browser_support: str = ""
    troubleshooting: str = ""


class DeliveryPackage(ContractModel):
    """Files that leave the system; completeness is checked semantically"""

    html_email: str = ""
    mjml_source: Optional[str] = None
    assets: list[AssetFile] = Field(default_factory=list)
    documentation: DeliveryDocumentation = Field(default_factory=DeliveryDocumentation)
    preview_files: list[PreviewFile] = Field(default_factory=list)


class QualityToDeliveryHandoff(ProvenanceMixin):
    """Payload handed from the quality specialist to the delivery specialist"""

    variant: ClassVar[HandoffVariant] = HandoffVariant.QUALITY_TO_DELIVERY

    quality_package: QualityPackage
    test_results: QualityTestResults
    accessibility_report: AccessibilityReport
    performance_analysis: PerformanceAnalysis
    spam_analysis: SpamAnalysis
    delivery_package: DeliveryPackage = Field(default_factory=DeliveryPackage)
    original_content: ContentPackage


HandoffPayload = Union[
    ContentToDesignHandoff,
    DesignToQualityHandoff,
    QualityToDeliveryHandoff,
]

VARIANT_CONTRACTS: dict[HandoffVariant, type[ProvenanceMixin]] = {
    HandoffVariant.CONTENT_TO_DESIGN: ContentToDesignHandoff,
    HandoffVariant.DESIGN_TO_QUALITY: DesignToQualityHandoff,
    HandoffVariant.QUALITY_TO_DELIVERY: QualityToDeliveryHandoff,
}

# Top-level sections each variant must carry, used by the integrity precheck
REQUIRED_SECTIONS: dict[HandoffVariant, tuple[str, ...]] = {
    HandoffVariant.CONTENT_TO_DESIGN: ("content_package", "design_requirements"),
    HandoffVariant.DESIGN_TO_QUALITY: ("email_package", "rendering_metadata"),
    HandoffVariant.QUALITY_TO_DELIVERY: ("quality_package", "test_results"),
}


__all__ = [
    "HandoffVariant",
    "HandoffPayload",
    "VARIANT_CONTRACTS",
    "REQUIRED_SECTIONS",
    "parse_iso_instant",
    # Content -> Design
    "ContentToDesignHandoff",
    "ContentPackage",
    "CompleteContent",
    "ContentMetadata",
    "BrandGuidelines",
    "DesignRequirements",
    "CampaignContext",
    # Design -> Quality
    "DesignToQualityHandoff",
    "EmailPackage",
    "RenderingMetadata",
    "PerformanceMetrics",
    "DesignArtifacts",
    # Quality -> Delivery
    "QualityToDeliveryHandoff",
    "QualityPackage",
    "QualityTestResults",
    "AccessibilityReport",
    "PerformanceAnalysis",
    "SpamAnalysis",
    "DeliveryPackage",
    "DeliveryDocumentation",
    "AssetFile",
    "PreviewFile",
]
