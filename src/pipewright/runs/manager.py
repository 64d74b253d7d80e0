"""Run manager with in-memory storage and background execution."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Sequence

from pipewright.config import Settings
from pipewright.models.pipeline import RunStatus
from pipewright.models.run import PipelineRun, RunTrigger
from pipewright.pipeline.base import PipelineStage
from pipewright.pipeline.executor import PipelineExecutor
from pipewright.pipeline.factory import build_context, build_stages
from pipewright.services.quality_gate import QualityGateWaiter

logger = logging.getLogger(__name__)


class RunManager:
    """Manages pipeline runs with concurrency control.

    Runs are stored in-memory (dict). Background execution uses
    asyncio.create_task with a semaphore. With fixed container names the
    semaphore must stay at 1, since two runs would fight over the same
    containers; a run triggered while another is active queues behind it.
    Runs with scoped names each check out into their own directory, which
    is removed when the run ends.
    """

    def __init__(
        self,
        settings: Settings,
        waiter: QualityGateWaiter | None = None,
        stages: Sequence[PipelineStage] | None = None,
        max_concurrent: int | None = None,
    ) -> None:
        self.settings = settings
        self.waiter = waiter or QualityGateWaiter(project_key=settings.sonar_project_key)
        self.stages = list(stages) if stages is not None else build_stages(settings, self.waiter)
        self._executor = PipelineExecutor(log_tail_lines=settings.log_tail_lines)

        limit = max_concurrent or settings.max_concurrent_runs
        if limit > 1 and not settings.scope_names_per_run:
            logger.warning(
                "max_concurrent_runs > 1 without scope_names_per_run; "
                "concurrent runs will collide on container names. Using 1."
            )
            limit = 1
        self._semaphore = asyncio.Semaphore(limit)

        self._runs: dict[str, PipelineRun] = {}
        self._tasks: dict[str, asyncio.Task[PipelineRun]] = {}

    def create_run(
        self,
        branch: str | None = None,
        trigger: RunTrigger = RunTrigger.MANUAL,
    ) -> PipelineRun:
        """Create a new run and schedule it for background execution.

        Args:
            branch: Branch to build (defaults to the configured branch)
            trigger: What started the run

        Returns:
            The created PipelineRun (status=pending)
        """
        run = PipelineRun(
            branch=branch or self.settings.branch,
            trigger=trigger,
            stage_names=[stage.name for stage in self.stages],
        )
        self._runs[run.id] = run
        self._tasks[run.id] = asyncio.create_task(self.execute(run))
        logger.info(f"Run {run.id} queued ({trigger.value}, branch {run.branch})")
        return run

    def get_run(self, run_id: str) -> PipelineRun | None:
        """Get a run by ID."""
        return self._runs.get(run_id)

    def list_runs(self) -> list[PipelineRun]:
        """List all runs, most recent first."""
        return sorted(self._runs.values(), key=lambda r: r.created_at, reverse=True)

    async def wait(self, run_id: str) -> PipelineRun:
        """Wait for a background run to reach a terminal state."""
        return await self._tasks[run_id]

    async def execute(self, run: PipelineRun) -> PipelineRun:
        """Execute a run with semaphore-based concurrency control."""
        self._runs.setdefault(run.id, run)
        async with self._semaphore:
            context = build_context(self.settings, run)
            try:
                await self._executor.run(self.stages, context, run)
            except Exception as e:
                logger.exception("Run %s failed", run.id)
                run.finish(RunStatus.FAILED, str(e))
            finally:
                if self.settings.scope_names_per_run:
                    await asyncio.to_thread(shutil.rmtree, context.checkout_dir, True)
        return run
