"""Maven invocations for the backend build and SonarQube analysis."""

import logging
from pathlib import Path

from pipewright.services.shell import CommandResult, CommandRunner
from pipewright.services.sonar import SonarReport

logger = logging.getLogger(__name__)


class MavenService:
    """Maven CLI wrapper."""

    def __init__(self, runner: CommandRunner, command: str = "mvn") -> None:
        self._runner = runner
        self._mvn = command

    async def package(self, project_dir: Path, skip_tests: bool = True) -> CommandResult:
        """Run ``mvn clean package``, optionally skipping test execution."""
        cmd = [self._mvn, "-B", "clean", "package"]
        if skip_tests:
            cmd.append("-DskipTests")
        return await self._runner.run(cmd, cwd=project_dir)

    async def sonar(
        self,
        project_dir: Path,
        host_url: str,
        project_key: str,
        token: str = "",
        project_name: str | None = None,
    ) -> tuple[CommandResult, SonarReport | None]:
        """Run the SonarQube scanner through the Maven plugin.

        The token goes through ``SONAR_TOKEN`` so it never shows up in the
        logged command line.

        Returns:
            The command result and the parsed ``report-task.txt`` (None if
            the scanner did not write one)
        """
        cmd = [
            self._mvn, "-B", "sonar:sonar",
            f"-Dsonar.projectKey={project_key}",
            f"-Dsonar.host.url={host_url}",
        ]
        if project_name:
            cmd.append(f"-Dsonar.projectName={project_name}")

        env = {"SONAR_TOKEN": token} if token else None
        result = await self._runner.run(cmd, cwd=project_dir, env=env)

        report = SonarReport.load(project_dir)
        if report is None:
            logger.warning(f"No scanner report found under {project_dir}")
        return result, report
