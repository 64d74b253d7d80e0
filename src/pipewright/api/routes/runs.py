"""Pipeline run endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from pipewright.api.deps import get_run_manager
from pipewright.api.schemas import (
    RunCreateRequest,
    RunCreateResponse,
    RunListItem,
    RunStatusResponse,
)
from pipewright.runs.manager import RunManager

router = APIRouter(prefix="/api/v1/runs", tags=["runs"])


@router.post("", response_model=RunCreateResponse, status_code=202)
async def create_run(
    req: RunCreateRequest | None = None,
    mgr: RunManager = Depends(get_run_manager),
) -> RunCreateResponse:
    run = mgr.create_run(branch=req.branch if req else None)
    return RunCreateResponse(run_id=run.id, status=run.status.value, branch=run.branch)


@router.get("", response_model=list[RunListItem])
async def list_runs(
    mgr: RunManager = Depends(get_run_manager),
) -> list[RunListItem]:
    return [
        RunListItem(
            run_id=r.id,
            branch=r.branch,
            status=r.status.value,
            created_at=r.created_at,
        )
        for r in mgr.list_runs()
    ]


@router.get("/{run_id}", response_model=RunStatusResponse)
async def get_run(
    run_id: str,
    mgr: RunManager = Depends(get_run_manager),
) -> RunStatusResponse:
    run = mgr.get_run(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Run not found")
    return RunStatusResponse.from_run(run)
