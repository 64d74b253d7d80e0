"""Custom exceptions for pipewright."""


class PipewrightError(Exception):
    """Base exception for pipewright."""

    pass


class CommandError(PipewrightError):
    """External command exited with a non-zero status or did not finish."""

    def __init__(
        self,
        command: list[str],
        returncode: int,
        output: str = "",
        message: str | None = None,
    ):
        super().__init__(
            message or f"Command failed with exit code {returncode}: {' '.join(command)}"
        )
        self.command = command
        self.returncode = returncode
        self.output = output


class PortInUseError(CommandError):
    """Container could not publish its host port."""

    pass


class PipelineError(PipewrightError, ValueError):
    """Pipeline was defined or invoked incorrectly."""

    pass


class StageError(PipewrightError):
    """A pipeline stage failed. Always fatal to the run."""

    stage: str = ""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class CheckoutError(StageError):
    """Remote unreachable or branch missing."""

    stage = "checkout"


class BuildError(StageError):
    """Backend compilation failed."""

    stage = "backend_build"


class AnalysisError(StageError):
    """Static analysis scanner could not run."""

    stage = "static_analysis"


class QualityGateError(StageError):
    """Quality gate did not let the code through."""

    stage = "quality_gate"


class QualityGateRejected(QualityGateError):
    """Analysis service reported a failing quality gate."""

    pass


class QualityGateTimeout(QualityGateError):
    """No quality gate result arrived within the configured bound."""

    pass


class QualityGateUnavailable(QualityGateError):
    """The quality gate result could not be read from the analysis service."""

    pass


class DeployError(StageError):
    """Container image build or start failed."""

    stage = "deploy"
