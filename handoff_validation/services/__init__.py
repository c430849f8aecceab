from .claude_corrector import ClaudeCorrector
from .validation_monitor import AgentSummary, ValidationMonitor

__all__ = [
    "ClaudeCorrector",
    "ValidationMonitor",
    "AgentSummary",
]
