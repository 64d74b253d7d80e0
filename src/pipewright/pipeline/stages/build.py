"""Backend build stage."""

from pipewright.errors import BuildError, CommandError
from pipewright.models.pipeline import StageResult
from pipewright.pipeline.base import PipelineStage
from pipewright.pipeline.context import PipelineContext
from pipewright.services.maven import MavenService


class BackendBuildStage(PipelineStage):
    """Compile and package the backend with Maven.

    Test execution is skipped unless ``skip_tests`` is turned off.
    """

    def __init__(self, maven: MavenService, backend_dir: str, skip_tests: bool = True) -> None:
        self._maven = maven
        self._backend_dir = backend_dir
        self._skip_tests = skip_tests

    @property
    def name(self) -> str:
        return "backend_build"

    @property
    def display_name(self) -> str:
        return "Backend Build"

    @property
    def description(self) -> str:
        return "mvn clean package" + (" -DskipTests" if self._skip_tests else "")

    async def execute(self, context: PipelineContext) -> StageResult:
        project_dir = context.checkout_dir / self._backend_dir
        if not (project_dir / "pom.xml").exists():
            raise BuildError(f"No pom.xml in {project_dir}")

        try:
            result = await self._maven.package(project_dir, skip_tests=self._skip_tests)
        except CommandError as e:
            raise BuildError("Backend build failed", output=e.output) from e

        return StageResult.success(
            message="Backend packaged",
            data={"project_dir": str(project_dir)},
            log=result.output,
        )
