"""
Handoff payload factories for tests.

Every factory returns a fresh, fully valid raw payload so tests can break
exactly the fields they are about.
"""
from typing import Any, Optional

TRACE_ID = "3f1c2b9e-8d4a-4c6e-9b7f-1a2b3c4d5e6f"
OTHER_TRACE_ID = "9a8b7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d"
TIMESTAMP = "2024-05-01T10:00:00Z"

HTML_PREFIX = (
    '<!DOCTYPE html><html><head><meta charset="utf-8">'
    "<title>Spring sale</title></head><body>"
)
HTML_SUFFIX = "</body></html>"

MJML_SOURCE = (
    "<mjml><mj-body><mj-section><mj-column>"
    "<mj-text>Spring sale</mj-text>"
    "</mj-column></mj-section></mj-body></mjml>"
)

DOC_TEXT = (
    "This section describes how to use the email template in a real campaign "
    "and which clients were checked."
)


def html_of_size(size_bytes: int) -> str:
    """ASCII HTML document of exactly size_bytes bytes"""
    filler = size_bytes - len(HTML_PREFIX) - len(HTML_SUFFIX)
    return HTML_PREFIX + "a" * filler + HTML_SUFFIX


DEFAULT_HTML = html_of_size(2048)


def content_package() -> dict[str, Any]:
    return {
        "complete_content": {
            "subject": "Spring sale: flights to Istanbul from 99 EUR",
            "preheader": "Book before Friday and save on every route",
            "body": (
                "Spring is the best time to discover Istanbul. Our partners have "
                "cut fares on all direct flights until the end of the month."
            ),
            "cta": "Book now",
        },
        "content_metadata": {
            "language": "en",
            "tone": "friendly",
            "word_count": 120,
            "reading_time": 0.5,
        },
        "brand_guidelines": {
            "voice_tone": "warm and confident",
            "key_messages": ["Best prices of the season"],
        },
    }


def content_to_design(trace_id: str = TRACE_ID) -> dict[str, Any]:
    return {
        "trace_id": trace_id,
        "timestamp": TIMESTAMP,
        "content_package": content_package(),
        "design_requirements": {
            "template_type": "promotional",
            "visual_priority": "balanced",
            "layout_preferences": ["single-column"],
            "color_scheme": "blue",
        },
        "campaign_context": {
            "topic": "Spring flights to Istanbul",
            "target_audience": "Frequent travellers",
            "destination": "Istanbul",
            "origin": "Moscow",
            "urgency_level": "medium",
        },
    }


def design_to_quality(
    trace_id: str = TRACE_ID, html: Optional[str] = None
) -> dict[str, Any]:
    return {
        "trace_id": trace_id,
        "timestamp": "2024-05-01T10:05:00.250+00:00",
        "email_package": {
            "html_content": html if html is not None else DEFAULT_HTML,
            "mjml_source": MJML_SOURCE,
            "inline_css": "body { margin: 0; }",
            "asset_urls": ["https://cdn.example.com/images/hero.png"],
        },
        "rendering_metadata": {
            "template_type": "promotional",
            "file_size_bytes": 2048,
            "render_time_ms": 120.0,
            "optimization_applied": ["minify", "inline-css"],
        },
        "design_artifacts": {
            "performance_metrics": {
                "css_rules_count": 12,
                "images_count": 1,
                "total_size_kb": 2.5,
            },
            "accessibility_features": ["alt-text", "semantic-headings"],
            "responsive_breakpoints": ["600px"],
            "dark_mode_support": True,
        },
        "original_content": content_package(),
    }


def delivery_package() -> dict[str, Any]:
    return {
        "html_email": DEFAULT_HTML,
        "mjml_source": MJML_SOURCE,
        "assets": [
            {
                "filename": "hero.png",
                "size_bytes": 40960,
                "mime_type": "image/png",
                "optimized": True,
            }
        ],
        "documentation": {
            "readme": DOC_TEXT,
            "implementation_guide": DOC_TEXT,
            "testing_notes": DOC_TEXT,
            "browser_support": DOC_TEXT,
        },
        "preview_files": [
            {"filename": "desktop.png", "type": "desktop", "size_bytes": 51200},
            {"filename": "mobile.png", "type": "mobile", "size_bytes": 30720},
        ],
    }


def quality_to_delivery(trace_id: str = TRACE_ID) -> dict[str, Any]:
    return {
        "trace_id": trace_id,
        "timestamp": "2024-05-01T10:10:00+03:00",
        "quality_package": {
            "validated_html": DEFAULT_HTML,
            "quality_score": 88.0,
            "validation_status": "passed",
            "optimized_assets": ["https://cdn.example.com/images/hero.png"],
        },
        "test_results": {
            "html_validation": {"w3c_compliant": True, "errors": [], "warnings": []},
            "css_validation": {"valid": True, "issues": []},
            "email_client_compatibility": {
                "gmail": True,
                "outlook": True,
                "apple_mail": True,
                "yahoo_mail": True,
                "compatibility_score": 97.0,
            },
        },
        "accessibility_report": {
            "wcag_aa_compliant": True,
            "issues": [],
            "score": 92.0,
        },
        "performance_analysis": {
            "load_time_score": 90.0,
            "file_size_score": 85.0,
            "optimization_score": 80.0,
        },
        "spam_analysis": {
            "spam_score": 1.5,
            "risk_factors": [],
            "recommendations": [],
        },
        "delivery_package": delivery_package(),
        "original_content": content_package(),
    }
