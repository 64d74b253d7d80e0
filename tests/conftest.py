"""Shared fixtures and fake stages."""

from __future__ import annotations

from pathlib import Path

import pytest

from pipewright.config import Settings
from pipewright.models.pipeline import StageResult
from pipewright.pipeline.base import PipelineStage
from pipewright.pipeline.context import PipelineContext


class RecordingStage(PipelineStage):
    """Stage that records its invocation and then succeeds or raises."""

    def __init__(
        self,
        name: str,
        calls: list[str],
        error: Exception | None = None,
        log: str = "",
    ) -> None:
        self._name = name
        self._calls = calls
        self._error = error
        self._log = log

    @property
    def name(self) -> str:
        return self._name

    @property
    def display_name(self) -> str:
        return self._name.replace("_", " ").title()

    async def execute(self, context: PipelineContext) -> StageResult:
        self._calls.append(self._name)
        if self._error is not None:
            raise self._error
        return StageResult.success(message=f"{self._name} ok", log=self._log)


@pytest.fixture
def recording_stage() -> type[RecordingStage]:
    return RecordingStage


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        repo_url="https://git.example.com/shop.git",
        workspace_dir=tmp_path / "workspace",
        sonar_project_key="shop-backend",
    )


@pytest.fixture
def context(tmp_path: Path) -> PipelineContext:
    return PipelineContext(
        run_id="run123",
        repo_url="https://git.example.com/shop.git",
        branch="main",
        checkout_dir=tmp_path / "checkout",
    )
