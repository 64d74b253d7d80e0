"""Delivery of quality gate results from the webhook to waiting runs."""

import asyncio
import logging

from pipewright.models.quality_gate import QualityGateResult

logger = logging.getLogger(__name__)


class QualityGateWaiter:
    """Matches webhook deliveries to the runs awaiting them.

    Each wait is a single-shot future keyed by the analysis task id. Runs
    whose scanner reported no task id fall back to the project key, which
    only identifies the run while runs are serialized.

    A delivery that arrives before anyone waits for it is buffered, since
    SonarQube can finish a small analysis before the gate stage starts. The
    buffer keeps at most ``max_buffered`` results, oldest dropped first.

    All methods must be called from the event loop that runs the pipeline.
    """

    def __init__(self, project_key: str | None = None, max_buffered: int = 32) -> None:
        """Initialize the waiter.

        Args:
            project_key: Only accept results for this project (None = any)
            max_buffered: Upper bound on results held for late waiters
        """
        self.project_key = project_key
        self.max_buffered = max_buffered
        self._pending: dict[str, asyncio.Future[QualityGateResult]] = {}
        self._buffered: dict[str, QualityGateResult] = {}

    def reset(self, project_key: str) -> None:
        """Forget every buffered result for a project before a new analysis."""
        stale = [k for k, v in self._buffered.items() if v.project_key == project_key]
        for key in stale:
            del self._buffered[key]

    def deliver(self, result: QualityGateResult) -> bool:
        """Hand a gate result to whoever waits for it.

        Returns:
            True if a waiting run received it, False if it was buffered or
            belongs to another project
        """
        if self.project_key and result.project_key != self.project_key:
            logger.warning(
                f"Ignoring quality gate result for project {result.project_key} "
                f"(expected {self.project_key})"
            )
            return False

        for key in (result.task_id, result.project_key):
            if key is None:
                continue
            future = self._pending.pop(key, None)
            if future is not None and not future.done():
                future.set_result(result)
                logger.info(f"Delivered quality gate {result.status} for {key}")
                return True

        key = result.task_id or result.project_key
        if key is None:
            logger.warning("Dropping quality gate result with neither task id nor project key")
            return False

        self._buffered.pop(key, None)
        self._buffered[key] = result
        while len(self._buffered) > self.max_buffered:
            del self._buffered[next(iter(self._buffered))]
        logger.info(
            f"Buffered quality gate {result.status} for task={result.task_id} "
            f"project={result.project_key}"
        )
        return False

    async def wait(self, task_id: str | None = None, project_key: str | None = None) -> QualityGateResult:
        """Wait for the result of analysis ``task_id``.

        Without a task id the wait matches on ``project_key`` instead. Has no
        deadline of its own; callers bound it with a timeout. The
        registration is dropped when the wait ends or is cancelled.
        """
        key = task_id or project_key
        if key is None:
            raise ValueError("wait() needs a task id or a project key")

        buffered = self._take_buffered(task_id, project_key)
        if buffered is not None:
            logger.info(f"Using buffered quality gate result for {key}")
            return buffered

        future = self._pending.get(key)
        if future is None or future.done():
            future = asyncio.get_running_loop().create_future()
            self._pending[key] = future

        try:
            return await future
        finally:
            if self._pending.get(key) is future:
                del self._pending[key]

    def _take_buffered(self, task_id: str | None, project_key: str | None) -> QualityGateResult | None:
        if task_id:
            return self._buffered.pop(task_id, None)
        # Newest result for the project wins
        for key in reversed(list(self._buffered)):
            if self._buffered[key].project_key == project_key:
                return self._buffered.pop(key)
        return None

    @property
    def pending_keys(self) -> list[str]:
        return list(self._pending)

    @property
    def buffered_count(self) -> int:
        return len(self._buffered)
