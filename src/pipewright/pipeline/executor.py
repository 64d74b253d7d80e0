"""Pipeline executor for running stages in sequence."""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from pipewright.errors import PipelineError, QualityGateError, StageError
from pipewright.models.pipeline import RunStatus, StageResult, StageStatus
from pipewright.models.run import PipelineRun
from pipewright.pipeline.base import PipelineStage
from pipewright.pipeline.context import PipelineContext
from pipewright.services.shell import tail

logger = logging.getLogger(__name__)


class PipelineExecutor:
    """Executes pipeline stages strictly in sequence, stopping at the first failure.

    Side effects of completed stages (artifacts, containers, reports) are
    left in place when a later stage fails.
    """

    def __init__(self, log_tail_lines: int = 50) -> None:
        """Initialize the executor.

        Args:
            log_tail_lines: Lines of command output kept per stage
        """
        self.log_tail_lines = log_tail_lines

    async def run(
        self,
        stages: Sequence[PipelineStage],
        context: PipelineContext,
        run: PipelineRun | None = None,
    ) -> PipelineRun:
        """Execute every stage in order.

        Args:
            stages: Non-empty ordered stage sequence
            context: Shared pipeline context
            run: Run record to update in place (a new one is created if None)

        Returns:
            The run in a terminal state: SUCCESS if every stage completed,
            ABORTED if the quality gate rejected or timed out, FAILED otherwise

        Raises:
            PipelineError: If ``stages`` is empty or has duplicate names
        """
        if not stages:
            raise PipelineError("A pipeline needs at least one stage")
        names = [stage.name for stage in stages]
        if len(set(names)) != len(names):
            raise PipelineError(f"Duplicate stage names: {names}")

        if run is None:
            run = PipelineRun(id=context.run_id, branch=context.branch)
        run.stage_names = names
        run.cursor = 0
        run.status = RunStatus.RUNNING
        run.started_at = datetime.now(timezone.utc)
        logger.info(f"Run {run.id} started on {context.branch}: {' -> '.join(names)}")

        for stage in stages:
            result, failure_status = await self._execute_stage(stage, context)
            run.results[stage.name] = result
            run.commit = context.commit

            if result.status != StageStatus.COMPLETED:
                run.failed_stage = stage.name
                run.finish(failure_status, result.message)
                logger.error(
                    f"Run {run.id} {run.status.value} at stage {stage.name}: {result.message}"
                )
                return run

            if result.data:
                context.set_stage_data(stage.name, result.data)
            run.advance()

        run.finish(RunStatus.SUCCESS)
        logger.info(f"Run {run.id} succeeded")
        return run

    async def _execute_stage(
        self,
        stage: PipelineStage,
        context: PipelineContext,
    ) -> tuple[StageResult, RunStatus]:
        """Run one stage, converting its failure into a failed StageResult.

        Returns:
            The stage result and the run status to use if it failed
        """
        started_at = datetime.now(timezone.utc)
        failure_status = RunStatus.FAILED
        logger.info(f"Stage started: {stage.name}")

        deadline = asyncio.timeout(stage.timeout)
        try:
            async with deadline:
                result = await stage.execute(context)
        except StageError as e:
            result = StageResult.failure(str(e), log=e.output)
            failure_status = self._status_for(e)
        except TimeoutError as e:
            if deadline.expired():
                error = stage.timeout_error()
                result = StageResult.failure(str(error), log=error.output)
                failure_status = self._status_for(error)
            else:
                # Raised inside the stage, not by its own bound
                logger.exception(f"Stage execution error: {stage.name}")
                result = StageResult.failure(str(e) or "Operation timed out")
        except Exception as e:
            logger.exception(f"Stage execution error: {stage.name}")
            result = StageResult.failure(str(e))

        result.log = tail(result.log, self.log_tail_lines)
        result.started_at = started_at
        result.completed_at = datetime.now(timezone.utc)

        if result.status == StageStatus.COMPLETED:
            logger.info(f"Stage completed: {stage.name} ({result.duration_seconds:.1f}s)")
        else:
            logger.error(f"Stage failed: {stage.name} - {result.message}")
        return result, failure_status

    @staticmethod
    def _status_for(error: StageError) -> RunStatus:
        if isinstance(error, QualityGateError):
            return RunStatus.ABORTED
        return RunStatus.FAILED
