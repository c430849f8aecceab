"""
In-memory metrics sink for handoff validation.

Keeps an append-only log of validation records and summarizes it per agent.
Records are only ever appended, so concurrent pipelines can share one monitor.
"""
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from handoff_validation.models.domain import ValidationRecord

logger = structlog.get_logger(__name__)


class AgentSummary(BaseModel):
    """Aggregated validation statistics for one producing agent"""

    agent_id: str
    total_validations: int = Field(ge=0)
    successful: int = Field(ge=0)
    failed: int = Field(ge=0)
    success_rate: float = Field(ge=0.0, le=1.0)
    average_duration_ms: float = Field(ge=0.0)
    correction_attempts: int = Field(ge=0)


class ValidationMonitor:
    """Append-only validation metrics log"""

    def __init__(self) -> None:
        self._records: list[ValidationRecord] = []
        self.logger = logger.bind(service="validation_monitor")

    def record(self, record: ValidationRecord) -> None:
        """Append one validation record"""
        self._records.append(record)
        self.logger.info(
            "Validation recorded",
            agent_id=record.agent_id,
            success=record.success,
            duration_ms=record.duration_ms,
            correction_attempts=record.correction_attempts,
            trace_id=record.trace_id,
        )

    @property
    def records(self) -> tuple[ValidationRecord, ...]:
        return tuple(self._records)

    def get_summary(self, agent_id: Optional[str] = None) -> dict[str, AgentSummary]:
        """
        Summarize the log per agent.

        Args:
            agent_id: Restrict the summary to one agent

        Returns:
            Mapping of agent id to its summary
        """
        grouped: dict[str, list[ValidationRecord]] = {}
        for record in self._records:
            if agent_id is not None and record.agent_id != agent_id:
                continue
            grouped.setdefault(record.agent_id, []).append(record)

        summaries = {}
        for agent, records in grouped.items():
            successful = sum(1 for r in records if r.success)
            summaries[agent] = AgentSummary(
                agent_id=agent,
                total_validations=len(records),
                successful=successful,
                failed=len(records) - successful,
                success_rate=successful / len(records),
                average_duration_ms=sum(r.duration_ms for r in records) / len(records),
                correction_attempts=sum(r.correction_attempts for r in records),
            )
        return summaries


__all__ = [
    "AgentSummary",
    "ValidationMonitor",
]
