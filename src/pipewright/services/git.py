"""Git operations for checking out the source repository."""

import logging
from pathlib import Path

from pipewright.services.shell import CommandRunner

logger = logging.getLogger(__name__)


class GitService:
    """git CLI wrapper."""

    def __init__(self, runner: CommandRunner, command: str = "git") -> None:
        self._runner = runner
        self._git = command

    async def branch_exists(self, repo_url: str, branch: str) -> bool:
        """Check that ``branch`` exists on the remote.

        Raises:
            CommandError: If the remote cannot be reached
        """
        result = await self._runner.run(
            [self._git, "ls-remote", "--heads", repo_url, branch],
            env={"GIT_TERMINAL_PROMPT": "0"},
        )
        return any(
            line.split("\t")[-1] == f"refs/heads/{branch}"
            for line in result.stdout.splitlines()
        )

    async def checkout(self, repo_url: str, branch: str, dest: Path) -> str:
        """Bring ``dest`` to the tip of ``branch``, cloning if needed.

        An existing checkout is fetched and hard-reset so leftovers from a
        previous run never leak into the build.

        Returns:
            The checked-out commit SHA
        """
        env = {"GIT_TERMINAL_PROMPT": "0"}

        if (dest / ".git").exists():
            logger.info(f"Updating existing checkout in {dest}")
            await self._git_in(dest, ["remote", "set-url", "origin", repo_url], env)
            await self._git_in(dest, ["fetch", "--prune", "origin", branch], env)
            await self._git_in(dest, ["checkout", "-B", branch, f"origin/{branch}"], env)
            await self._git_in(dest, ["reset", "--hard", f"origin/{branch}"], env)
            await self._git_in(dest, ["clean", "-fdx"], env)
        else:
            dest.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Cloning {repo_url} ({branch}) into {dest}")
            await self._runner.run(
                [
                    self._git, "clone",
                    "--branch", branch,
                    "--single-branch",
                    repo_url, str(dest),
                ],
                env=env,
            )

        result = await self._git_in(dest, ["rev-parse", "HEAD"], env)
        return result.stdout.strip()

    async def _git_in(self, repo: Path, args: list[str], env: dict[str, str]):
        return await self._runner.run([self._git, "-C", str(repo), *args], env=env)
