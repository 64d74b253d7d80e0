"""Pipeline module for pipewright."""

from pipewright.pipeline.base import PipelineStage
from pipewright.pipeline.context import PipelineContext
from pipewright.pipeline.executor import PipelineExecutor
from pipewright.pipeline.factory import build_context, build_stages

__all__ = [
    "PipelineContext",
    "PipelineExecutor",
    "PipelineStage",
    "build_context",
    "build_stages",
]
