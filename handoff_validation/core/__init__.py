"""
Core module for the handoff validation engine
Contains the exception hierarchy shared by all components
"""

from .exceptions import (
    ConfigurationError,
    CorrectorError,
    HandoffEngineError,
    PipelineHaltedError,
    StageOrderError,
    UnknownVariantError,
)

__all__ = [
    "HandoffEngineError",
    "UnknownVariantError",
    "ConfigurationError",
    "CorrectorError",
    "PipelineHaltedError",
    "StageOrderError",
]
