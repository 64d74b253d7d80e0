"""Pipeline run domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pipewright.models.pipeline import RunStatus, StageResult


class RunTrigger(str, Enum):
    """What started a run."""

    MANUAL = "manual"
    PUSH = "push"
    CLI = "cli"


@dataclass
class PipelineRun:
    """One end-to-end execution of the stage sequence.

    ``cursor`` indexes ``stage_names`` and only moves forward when the stage
    it points at completes successfully.
    """

    id: str = field(default_factory=lambda: uuid4().hex[:12])
    branch: str = "main"
    trigger: RunTrigger = RunTrigger.MANUAL
    stage_names: list[str] = field(default_factory=list)
    cursor: int = 0
    status: RunStatus = RunStatus.PENDING
    results: dict[str, StageResult] = field(default_factory=dict)
    failed_stage: str | None = None
    error: str | None = None
    commit: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def current_stage(self) -> str | None:
        """Stage the cursor points at, or None once past the last stage."""
        if self.cursor < len(self.stage_names):
            return self.stage_names[self.cursor]
        return None

    @property
    def last_attempted_stage(self) -> str | None:
        if not self.results:
            return None
        return next(reversed(self.results))

    @property
    def last_log(self) -> str:
        """Output of the last attempted stage; the run's failure diagnostics."""
        name = self.last_attempted_stage
        return self.results[name].log if name else ""

    def advance(self) -> None:
        self.cursor += 1

    def finish(self, status: RunStatus, error: str | None = None) -> None:
        self.status = status
        self.error = error
        self.completed_at = datetime.now(timezone.utc)
