"""Async wrapper for running external commands."""

import asyncio
import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path

from pipewright.errors import CommandError

logger = logging.getLogger(__name__)


def tail(text: str, lines: int) -> str:
    """Return the last ``lines`` lines of ``text``."""
    if lines <= 0:
        return ""
    return "\n".join(text.splitlines()[-lines:])


@dataclass
class CommandResult:
    """Captured outcome of one external command."""

    command: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout followed by stderr."""
        if self.stdout and self.stderr:
            return f"{self.stdout.rstrip()}\n{self.stderr}"
        return self.stdout or self.stderr


class CommandRunner:
    """Runs external commands in a worker thread and captures their output."""

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize the runner.

        Args:
            timeout: Default per-command timeout in seconds (None = unbounded)
        """
        self.timeout = timeout

    async def run(
        self,
        cmd: list[str],
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
        check: bool = True,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            cmd: Command and arguments
            cwd: Working directory
            env: Extra environment variables, merged over the current environment
            check: Raise CommandError on a non-zero exit
            timeout: Overrides the runner's default timeout

        Returns:
            CommandResult with exit code and captured output

        Raises:
            CommandError: If the executable is missing, times out, or
                (with ``check``) exits non-zero
        """
        timeout = timeout if timeout is not None else self.timeout
        full_env = {**os.environ, **env} if env else None

        logger.info("Running: %s%s", shlex.join(cmd), f" (cwd={cwd})" if cwd else "")

        try:
            proc = await asyncio.to_thread(
                subprocess.run,
                cmd,
                cwd=str(cwd) if cwd else None,
                env=full_env,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            raise CommandError(cmd, 127, f"{cmd[0]}: command not found") from e
        except subprocess.TimeoutExpired as e:
            raise CommandError(
                cmd,
                -1,
                f"Timed out after {timeout}s",
                message=f"Timed out after {timeout}s: {shlex.join(cmd)}",
            ) from e

        result = CommandResult(
            command=cmd,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
        logger.info("Exit code %d: %s", result.returncode, cmd[0])

        if check and not result.ok:
            raise CommandError(cmd, result.returncode, result.output)
        return result
