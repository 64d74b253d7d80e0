"""Services module for pipewright."""

from pipewright.services.docker import DockerService
from pipewright.services.git import GitService
from pipewright.services.maven import MavenService
from pipewright.services.quality_gate import QualityGateWaiter
from pipewright.services.shell import CommandResult, CommandRunner
from pipewright.services.sonar import SonarQubeClient, SonarQubeError, SonarReport

__all__ = [
    "CommandResult",
    "CommandRunner",
    "DockerService",
    "GitService",
    "MavenService",
    "QualityGateWaiter",
    "SonarQubeClient",
    "SonarQubeError",
    "SonarReport",
]
