"""Pipeline execution context."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from pipewright.models.quality_gate import QualityGateResult


class PipelineContext(BaseModel):
    """Shared context for one pipeline run.

    This context is passed between stages and accumulates
    results as the pipeline progresses.
    """

    run_id: str = Field(..., description="ID of the run this context belongs to")
    repo_url: str = Field(..., description="Remote repository URL")
    branch: str = Field("main", description="Branch to build")
    checkout_dir: Path = Field(..., description="Where the repository is checked out")
    scope_names_per_run: bool = Field(
        False, description="Suffix container and image names with the run ID"
    )

    commit: str | None = Field(None, description="Checked-out commit SHA")
    gate_result: QualityGateResult | None = Field(None, description="Quality gate verdict")

    stage_data: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Data from completed stages"
    )

    def resource_name(self, name: str) -> str:
        """Container or image name for this run."""
        if self.scope_names_per_run:
            return f"{name}-{self.run_id}"
        return name

    def set_stage_data(self, stage_name: str, data: dict[str, Any]) -> None:
        """Store data from a completed stage."""
        self.stage_data[stage_name] = data

    def get_stage_data(self, stage_name: str) -> dict[str, Any] | None:
        """Retrieve data from a completed stage."""
        return self.stage_data.get(stage_name)
