from .handoff_pipeline import STAGE_ORDER, HandoffPipeline, HandoffResult

__all__ = [
    "STAGE_ORDER",
    "HandoffPipeline",
    "HandoffResult",
]
