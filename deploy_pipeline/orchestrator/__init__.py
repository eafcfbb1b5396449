"""Pipeline driver for the deployment pipeline.

Sequences checkout, quality gate, build, publish, redeploy and
verification into a single run with per-step policies and structured
results.
"""

from .models import (
    PipelineRun,
    RunStatus,
    Stage,
    StageDefinition,
    StepResult,
    StepStatus,
)
from .pipeline import DeploymentPipeline

__all__ = [
    "DeploymentPipeline",
    "PipelineRun",
    "RunStatus",
    "Stage",
    "StageDefinition",
    "StepResult",
    "StepStatus",
]
