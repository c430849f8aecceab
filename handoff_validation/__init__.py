"""
Email Handoff Validation Engine

Zero-tolerance validation of the payloads exchanged between the Content, Design,
Quality and Delivery stages of the marketing email agent pipeline.
"""

__version__ = "1.0.0"
__author__ = "Email Pipeline Team"
__description__ = "Handoff validation and correction engine for the email agent pipeline"

__all__ = [
    "__version__",
    "__author__",
    "__description__",
]
