"""Source checkout stage."""

from pipewright.errors import CheckoutError, CommandError
from pipewright.models.pipeline import StageResult
from pipewright.pipeline.base import PipelineStage
from pipewright.pipeline.context import PipelineContext
from pipewright.services.git import GitService


class CheckoutStage(PipelineStage):
    """Fetch the configured branch of the remote repository.

    Fails if the remote is unreachable or the branch does not exist.
    """

    def __init__(self, git: GitService) -> None:
        self._git = git

    @property
    def name(self) -> str:
        return "checkout"

    @property
    def display_name(self) -> str:
        return "Checkout"

    @property
    def description(self) -> str:
        return "Fetch source from the remote repository"

    async def execute(self, context: PipelineContext) -> StageResult:
        if not context.repo_url:
            raise CheckoutError("No repository URL configured")

        try:
            exists = await self._git.branch_exists(context.repo_url, context.branch)
        except CommandError as e:
            raise CheckoutError(
                f"Remote {context.repo_url} is unreachable", output=e.output
            ) from e
        if not exists:
            raise CheckoutError(
                f"Branch '{context.branch}' does not exist on {context.repo_url}"
            )

        try:
            commit = await self._git.checkout(
                context.repo_url, context.branch, context.checkout_dir
            )
        except CommandError as e:
            raise CheckoutError(f"Checkout of '{context.branch}' failed", output=e.output) from e

        context.commit = commit
        return StageResult.success(
            message=f"Checked out {context.branch} at {commit[:10]}",
            data={"branch": context.branch, "commit": commit},
        )
