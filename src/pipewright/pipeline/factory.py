"""Assembly of the fixed build-analyse-gate-deploy pipeline from settings."""

from pipewright.config import Settings
from pipewright.models.run import PipelineRun
from pipewright.pipeline.base import PipelineStage
from pipewright.pipeline.context import PipelineContext
from pipewright.pipeline.stages import (
    BackendBuildStage,
    CheckoutStage,
    ContainerDeployStage,
    QualityGateStage,
    StaticAnalysisStage,
)
from pipewright.services.docker import DockerService
from pipewright.services.git import GitService
from pipewright.services.maven import MavenService
from pipewright.services.quality_gate import QualityGateWaiter
from pipewright.services.shell import CommandRunner
from pipewright.services.sonar import SonarQubeClient


def build_stages(
    settings: Settings,
    waiter: QualityGateWaiter,
    runner: CommandRunner | None = None,
    gate_mode: str | None = None,
) -> list[PipelineStage]:
    """Create the six stages in execution order.

    Args:
        settings: Application settings
        waiter: Receives webhook deliveries for the quality gate stage
        runner: Command runner shared by all stages
        gate_mode: Overrides ``settings.quality_gate_mode``
    """
    runner = runner or CommandRunner(timeout=settings.command_timeout)
    maven = MavenService(runner, command=settings.maven_command)
    docker = DockerService(runner, command=settings.docker_command)
    mode = gate_mode or settings.quality_gate_mode

    client = None
    if mode == "poll":
        client = SonarQubeClient(
            settings.sonar_host_url,
            token=settings.sonar_token,
            poll_interval=settings.quality_gate_poll_interval,
        )

    return [
        CheckoutStage(GitService(runner)),
        BackendBuildStage(
            maven, settings.backend_dir, skip_tests=settings.build_skip_tests
        ),
        StaticAnalysisStage(
            maven,
            waiter,
            settings.backend_dir,
            host_url=settings.sonar_host_url,
            project_key=settings.sonar_project_key,
            token=settings.sonar_token,
            project_name=settings.sonar_project_name,
        ),
        QualityGateStage(
            settings.sonar_project_key,
            timeout=settings.quality_gate_timeout,
            mode=mode,
            waiter=waiter,
            client=client,
        ),
        ContainerDeployStage(
            "backend_deploy",
            "Backend Container Deploy",
            docker,
            source_dir=settings.backend_dir,
            container=settings.backend_container,
            image=settings.backend_image,
            host_port=settings.backend_host_port,
            container_port=settings.backend_container_port,
        ),
        ContainerDeployStage(
            "frontend_deploy",
            "Frontend Container Deploy",
            docker,
            source_dir=settings.frontend_dir,
            container=settings.frontend_container,
            image=settings.frontend_image,
            host_port=settings.frontend_host_port,
            container_port=settings.frontend_container_port,
        ),
    ]


def build_context(settings: Settings, run: PipelineRun) -> PipelineContext:
    """Create the context for one run."""
    return PipelineContext(
        run_id=run.id,
        repo_url=settings.repo_url,
        branch=run.branch,
        checkout_dir=settings.run_checkout_dir(run.id),
        scope_names_per_run=settings.scope_names_per_run,
    )
