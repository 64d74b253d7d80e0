"""Docker CLI operations for container deployment."""

import logging
from pathlib import Path

from pipewright.errors import CommandError, PortInUseError
from pipewright.services.shell import CommandRunner

logger = logging.getLogger(__name__)

_NOT_FOUND_MARKERS = ("No such container",)
_PORT_CONFLICT_MARKERS = ("port is already allocated", "address already in use")


class DockerService:
    """docker CLI wrapper."""

    def __init__(self, runner: CommandRunner, command: str = "docker") -> None:
        self._runner = runner
        self._docker = command

    async def remove_container(self, name: str) -> bool:
        """Force-remove a container by name.

        Returns:
            True if a container was removed, False if none existed
        """
        result = await self._runner.run([self._docker, "rm", "-f", name], check=False)
        if result.ok:
            logger.info(f"Removed container {name}")
            return True
        if any(marker in result.output for marker in _NOT_FOUND_MARKERS):
            logger.info(f"No existing container {name}")
            return False
        raise CommandError(result.command, result.returncode, result.output)

    async def build_image(self, tag: str, context_dir: Path) -> str:
        """Build an image from the Dockerfile in ``context_dir``.

        Returns:
            Build output
        """
        result = await self._runner.run([self._docker, "build", "-t", tag, str(context_dir)])
        return result.output

    async def run_container(
        self,
        name: str,
        image: str,
        host_port: int,
        container_port: int,
    ) -> str:
        """Start a detached container publishing ``host_port``.

        Returns:
            The new container ID

        Raises:
            PortInUseError: If the host port is already bound
            CommandError: For any other docker failure
        """
        cmd = [
            self._docker, "run", "-d",
            "--name", name,
            "-p", f"{host_port}:{container_port}",
            image,
        ]
        result = await self._runner.run(cmd, check=False)
        if result.ok:
            return result.stdout.strip()

        if any(marker in result.output for marker in _PORT_CONFLICT_MARKERS):
            # docker leaves a "Created" container behind when publishing fails
            await self.remove_container(name)
            raise PortInUseError(cmd, result.returncode, result.output)
        raise CommandError(cmd, result.returncode, result.output)
