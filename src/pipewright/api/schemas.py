"""Request and response schemas for the pipewright API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from pipewright.models.run import PipelineRun


# ------------------------------------------------------------------
# Run requests
# ------------------------------------------------------------------


class RunCreateRequest(BaseModel):
    branch: str | None = Field(None, description="Branch to build (default: configured branch)")


# ------------------------------------------------------------------
# Run responses
# ------------------------------------------------------------------


class RunCreateResponse(BaseModel):
    run_id: str
    status: str
    branch: str


class StageResultResponse(BaseModel):
    name: str
    status: str
    message: str | None = None
    data: dict[str, Any] | None = None
    log: str = ""
    duration_seconds: float = 0.0


class RunStatusResponse(BaseModel):
    run_id: str
    branch: str
    trigger: str
    status: str
    current_stage: str | None = None
    failed_stage: str | None = None
    error: str | None = None
    commit: str | None = None
    stages: list[str] = Field(default_factory=list)
    results: list[StageResultResponse] = Field(default_factory=list)
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_run(cls, run: PipelineRun) -> "RunStatusResponse":
        return cls(
            run_id=run.id,
            branch=run.branch,
            trigger=run.trigger.value,
            status=run.status.value,
            current_stage=run.current_stage,
            failed_stage=run.failed_stage,
            error=run.error,
            commit=run.commit,
            stages=run.stage_names,
            results=[
                StageResultResponse(
                    name=name,
                    status=result.status.value,
                    message=result.message,
                    data=result.data,
                    log=result.log,
                    duration_seconds=result.duration_seconds,
                )
                for name, result in run.results.items()
            ],
            created_at=run.created_at,
            started_at=run.started_at,
            completed_at=run.completed_at,
        )


class RunListItem(BaseModel):
    run_id: str
    branch: str
    status: str
    created_at: datetime


# ------------------------------------------------------------------
# Webhook responses
# ------------------------------------------------------------------


class GateDeliveryResponse(BaseModel):
    status: str
    passed: bool
    delivered: bool = Field(..., description="False if no run was waiting and the result was buffered")


class PushTriggerResponse(BaseModel):
    triggered: bool
    run_id: str | None = None
    reason: str | None = None
