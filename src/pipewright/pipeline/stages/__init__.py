"""Pipeline stages module.

Stages, in pipeline order:
- CheckoutStage: Fetch the branch from the remote repository
- BackendBuildStage: Maven package with tests skipped
- StaticAnalysisStage: SonarQube scanner
- QualityGateStage: Wait for the SonarQube quality gate verdict
- ContainerDeployStage: Backend and frontend container replacement
"""

from pipewright.pipeline.stages.analysis import StaticAnalysisStage
from pipewright.pipeline.stages.build import BackendBuildStage
from pipewright.pipeline.stages.checkout import CheckoutStage
from pipewright.pipeline.stages.deploy import ContainerDeployStage
from pipewright.pipeline.stages.quality_gate import QualityGateStage

__all__ = [
    "BackendBuildStage",
    "CheckoutStage",
    "ContainerDeployStage",
    "QualityGateStage",
    "StaticAnalysisStage",
]
