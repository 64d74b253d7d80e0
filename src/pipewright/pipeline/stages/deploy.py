"""Container deploy stages for the backend and frontend.

Deploying replaces the previous container: remove by name, rebuild the
image, start a fresh container. If the image build or start fails after the
old container was removed, the service stays down until the next run.
"""

import logging

from pipewright.errors import CommandError, DeployError, PortInUseError
from pipewright.models.pipeline import StageResult
from pipewright.pipeline.base import PipelineStage
from pipewright.pipeline.context import PipelineContext
from pipewright.services.docker import DockerService

logger = logging.getLogger(__name__)


class ContainerDeployStage(PipelineStage):
    """Replace a named container with one built from a checkout directory."""

    def __init__(
        self,
        name: str,
        display_name: str,
        docker: DockerService,
        source_dir: str,
        container: str,
        image: str,
        host_port: int,
        container_port: int,
    ) -> None:
        self._name = name
        self._display_name = display_name
        self._docker = docker
        self._source_dir = source_dir
        self._container = container
        self._image = image
        self._host_port = host_port
        self._container_port = container_port

    @property
    def name(self) -> str:
        return self._name

    @property
    def display_name(self) -> str:
        return self._display_name

    @property
    def description(self) -> str:
        return (
            f"Run {self._image} as {self._container} "
            f"on port {self._host_port}:{self._container_port}"
        )

    async def execute(self, context: PipelineContext) -> StageResult:
        container = context.resource_name(self._container)
        image = context.resource_name(self._image)
        build_dir = context.checkout_dir / self._source_dir
        if not (build_dir / "Dockerfile").exists():
            raise DeployError(f"No Dockerfile in {build_dir}")

        try:
            replaced = await self._docker.remove_container(container)
        except CommandError as e:
            raise DeployError(f"Could not remove container {container}", output=e.output) from e

        try:
            build_log = await self._docker.build_image(image, build_dir)
        except CommandError as e:
            raise DeployError(f"Image build failed for {image}", output=e.output) from e

        try:
            container_id = await self._docker.run_container(
                container, image, self._host_port, self._container_port
            )
        except PortInUseError as e:
            raise DeployError(
                f"Port {self._host_port} is already bound by another process", output=e.output
            ) from e
        except CommandError as e:
            raise DeployError(f"Could not start container {container}", output=e.output) from e

        logger.info(f"{container} running as {container_id[:12]} on port {self._host_port}")
        return StageResult.success(
            message=f"{container} running on port {self._host_port}",
            data={
                "container": container,
                "container_id": container_id,
                "image": image,
                "host_port": self._host_port,
                "replaced": replaced,
            },
            log=build_log,
        )
