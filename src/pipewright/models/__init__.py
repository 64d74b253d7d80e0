"""Data models for pipewright."""

from pipewright.models.pipeline import RunStatus, StageResult, StageStatus
from pipewright.models.quality_gate import GateCondition, QualityGateResult
from pipewright.models.run import PipelineRun, RunTrigger

__all__ = [
    # Run
    "PipelineRun",
    "RunTrigger",
    # Pipeline
    "RunStatus",
    "StageResult",
    "StageStatus",
    # Quality gate
    "GateCondition",
    "QualityGateResult",
]
