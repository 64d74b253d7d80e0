"""Static analysis stage."""

from pipewright.errors import AnalysisError, CommandError
from pipewright.models.pipeline import StageResult
from pipewright.pipeline.base import PipelineStage
from pipewright.pipeline.context import PipelineContext
from pipewright.services.maven import MavenService
from pipewright.services.quality_gate import QualityGateWaiter


class StaticAnalysisStage(PipelineStage):
    """Run the SonarQube scanner against the build output.

    Findings never fail this stage; that is the quality gate's job. It only
    fails when the scanner itself cannot run.
    """

    def __init__(
        self,
        maven: MavenService,
        waiter: QualityGateWaiter,
        backend_dir: str,
        host_url: str,
        project_key: str,
        token: str = "",
        project_name: str | None = None,
    ) -> None:
        self._maven = maven
        self._waiter = waiter
        self._backend_dir = backend_dir
        self._host_url = host_url
        self._project_key = project_key
        self._token = token
        self._project_name = project_name

    @property
    def name(self) -> str:
        return "static_analysis"

    @property
    def display_name(self) -> str:
        return "Static Analysis"

    @property
    def description(self) -> str:
        return f"SonarQube analysis of {self._project_key}"

    async def execute(self, context: PipelineContext) -> StageResult:
        project_dir = context.checkout_dir / self._backend_dir
        if not context.scope_names_per_run:
            # Serialized runs match on the project key when no task id comes back
            self._waiter.reset(self._project_key)

        try:
            result, report = await self._maven.sonar(
                project_dir,
                host_url=self._host_url,
                project_key=self._project_key,
                token=self._token,
                project_name=self._project_name,
            )
        except CommandError as e:
            raise AnalysisError("SonarQube scanner failed to run", output=e.output) from e

        data = {"project_key": self._project_key}
        if report is not None:
            data["ce_task_id"] = report.ce_task_id
            data["dashboard_url"] = report.dashboard_url

        return StageResult.success(
            message=f"Analysis submitted for {self._project_key}",
            data=data,
            log=result.output,
        )
