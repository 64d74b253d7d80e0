"""Base class for pipeline stages."""

from abc import ABC, abstractmethod

from pipewright.errors import StageError
from pipewright.models.pipeline import StageResult
from pipewright.pipeline.context import PipelineContext


class PipelineStage(ABC):
    """Abstract base class for pipeline stages.

    Each stage is one named unit of work with a single success/failure
    outcome, such as checkout, build or deploy. Stages are configured once
    at construction and never mutated afterwards. A stage signals failure by
    raising a StageError subclass or returning a failed StageResult.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this stage."""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable name for logs and the API."""
        ...

    @property
    def description(self) -> str:
        """Optional description of what this stage does."""
        return ""

    @property
    def timeout(self) -> float | None:
        """Upper bound on execution time in seconds, None for unbounded."""
        return None

    @abstractmethod
    async def execute(self, context: PipelineContext) -> StageResult:
        """Execute this pipeline stage.

        Args:
            context: Shared pipeline context

        Returns:
            StageResult with status and any output data

        Raises:
            StageError: If the stage's action fails
        """
        ...

    def timeout_error(self) -> StageError:
        """Error recorded when the stage exceeds its timeout."""
        return StageError(f"{self.display_name} timed out after {self.timeout:g}s")
