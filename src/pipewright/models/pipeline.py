"""Pipeline-related data models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StageStatus(str, Enum):
    """Status of a pipeline stage execution."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class RunStatus(str, Enum):
    """Status of a whole pipeline run.

    ``SUCCESS``, ``FAILED`` and ``ABORTED`` are terminal.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.SUCCESS, RunStatus.FAILED, RunStatus.ABORTED)


class StageResult(BaseModel):
    """Result of a pipeline stage execution."""

    status: StageStatus = Field(..., description="Execution status")
    message: str | None = Field(None, description="Status message or error description")
    data: dict[str, Any] | None = Field(None, description="Stage output data")
    log: str = Field("", description="Tail of the stage's command output")
    started_at: datetime | None = Field(None, description="When the stage started")
    completed_at: datetime | None = Field(None, description="When the stage finished")

    @classmethod
    def success(
        cls,
        message: str | None = None,
        data: dict[str, Any] | None = None,
        log: str = "",
    ) -> "StageResult":
        """Create a successful result."""
        return cls(status=StageStatus.COMPLETED, message=message, data=data, log=log)

    @classmethod
    def failure(
        cls,
        message: str,
        data: dict[str, Any] | None = None,
        log: str = "",
    ) -> "StageResult":
        """Create a failed result."""
        return cls(status=StageStatus.FAILED, message=message, data=data, log=log)

    @property
    def duration_seconds(self) -> float:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0
