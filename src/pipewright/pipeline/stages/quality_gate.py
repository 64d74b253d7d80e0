"""Quality gate wait stage.

The only stage with a timeout: the executor bounds it by ``timeout`` and
records a QualityGateTimeout when that elapses, which aborts the run.
"""

from pipewright.errors import (
    QualityGateError,
    QualityGateRejected,
    QualityGateTimeout,
    QualityGateUnavailable,
)
from pipewright.models.pipeline import StageResult
from pipewright.models.quality_gate import QualityGateResult
from pipewright.pipeline.base import PipelineStage
from pipewright.pipeline.context import PipelineContext
from pipewright.services.quality_gate import QualityGateWaiter
from pipewright.services.sonar import SonarQubeClient, SonarQubeError

GATE_MODES = ("webhook", "poll")


class QualityGateStage(PipelineStage):
    """Wait for the analysis service's quality gate verdict.

    In ``webhook`` mode the verdict arrives through ``POST /sonarqube-webhook/``;
    in ``poll`` mode it is read from the SonarQube Web API.
    """

    def __init__(
        self,
        project_key: str,
        timeout: float = 120.0,
        mode: str = "webhook",
        waiter: QualityGateWaiter | None = None,
        client: SonarQubeClient | None = None,
    ) -> None:
        if mode not in GATE_MODES:
            raise ValueError(f"Unknown quality gate mode '{mode}'. Available: {', '.join(GATE_MODES)}")
        if mode == "webhook" and waiter is None:
            raise ValueError("webhook mode needs a QualityGateWaiter")
        if mode == "poll" and client is None:
            raise ValueError("poll mode needs a SonarQubeClient")

        self._project_key = project_key
        self._timeout = timeout
        self._mode = mode
        self._waiter = waiter
        self._client = client

    @property
    def name(self) -> str:
        return "quality_gate"

    @property
    def display_name(self) -> str:
        return "Quality Gate"

    @property
    def description(self) -> str:
        return f"Wait up to {self._timeout:g}s for the quality gate ({self._mode})"

    @property
    def timeout(self) -> float | None:
        return self._timeout

    async def execute(self, context: PipelineContext) -> StageResult:
        analysis = context.get_stage_data("static_analysis") or {}
        task_id = analysis.get("ce_task_id")

        result = await self._await_result(task_id, context.scope_names_per_run)
        context.gate_result = result

        if not result.passed:
            failed = ", ".join(c.metric for c in result.failed_conditions)
            raise QualityGateRejected(
                f"Quality gate {result.status}" + (f" ({failed})" if failed else "")
            )

        return StageResult.success(
            message=f"Quality gate {result.status}",
            data={
                "status": result.status,
                "analysed_at": result.analysed_at.isoformat() if result.analysed_at else None,
            },
        )

    async def _await_result(self, task_id: str | None, concurrent: bool) -> QualityGateResult:
        if self._mode == "poll":
            if not task_id:
                raise QualityGateError("No analysis task id to poll for")
            try:
                return await self._client.wait_for_gate(task_id)
            except SonarQubeError as e:
                raise QualityGateUnavailable(
                    f"Could not read the quality gate from SonarQube: {e}",
                    output=str(e.details or ""),
                ) from e

        if not task_id and concurrent:
            # The project key cannot tell concurrent runs apart
            raise QualityGateError("No analysis task id to match the quality gate result to")
        return await self._waiter.wait(task_id, project_key=self._project_key)

    def timeout_error(self) -> QualityGateTimeout:
        return QualityGateTimeout(f"No quality gate result within {self._timeout:g}s")
