"""Health check endpoint."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from pipewright import __version__
from pipewright.api.deps import get_run_manager
from pipewright.runs.manager import RunManager

router = APIRouter()


class HealthResponse(BaseModel):
    """Liveness plus what the pipeline is doing right now."""

    status: str
    version: str
    active_runs: int
    gates_waiting: list[str]


@router.get("/health", response_model=HealthResponse)
async def health_check(mgr: RunManager = Depends(get_run_manager)) -> HealthResponse:
    active = [r for r in mgr.list_runs() if not r.status.is_terminal]
    return HealthResponse(
        status="healthy",
        version=__version__,
        active_runs=len(active),
        gates_waiting=mgr.waiter.pending_keys,
    )
