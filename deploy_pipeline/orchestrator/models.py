"""Data models for pipeline execution results."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from deploy_pipeline.artifacts import artifact_version


class Stage(Enum):
    """Pipeline stages in execution order."""

    CHECKOUT = "checkout"
    QUALITY_GATE = "quality_gate"
    BUILD = "build"
    PUBLISH = "publish"
    LOCATE = "locate"
    FETCH = "fetch"
    UNDEPLOY = "undeploy"
    INVALIDATE = "invalidate"
    RELOAD = "reload"
    DEPLOY = "deploy"
    VERIFY = "verify"
    # Operator-triggered redeploy of an existing archive
    REDEPLOY = "redeploy"


class StepStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


class RunStatus(Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class StepResult:
    """Result of a single pipeline step.

    A failed step with fatal=False came from a best-effort stage and does
    not fail the run.
    """

    name: str
    status: StepStatus
    duration_seconds: float
    details: dict[str, Any] = field(default_factory=dict)
    output: str = ""
    error: str | None = None
    fatal: bool = False

    @property
    def success(self) -> bool:
        return self.status is StepStatus.SUCCESS

    @property
    def skipped(self) -> bool:
        return self.status is StepStatus.SKIPPED


@dataclass(frozen=True)
class StageDefinition:
    """One entry of the pipeline's stage table.

    Attributes:
        stage: Which stage this is.
        handler: Called with the in-progress PipelineRun; returns the
            step's details. Raising marks the step failed.
        fatal_on_error: Whether a failure halts the run.
        skip_reason: When set, the stage is recorded as skipped.
    """

    stage: Stage
    handler: Callable[["PipelineRun"], dict[str, Any]]
    fatal_on_error: bool = True
    skip_reason: Optional[str] = None

    @property
    def name(self) -> str:
        return self.stage.value


@dataclass
class PipelineRun:
    """One execution of the pipeline.

    Steps are appended in order while the run is in progress; once
    complete() is called the run no longer accepts steps.
    """

    run_number: int
    started_at: datetime
    commit_ref: str | None = None
    finished_at: datetime | None = None
    steps: list[StepResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def version(self) -> str:
        return artifact_version(self.run_number)

    @property
    def is_complete(self) -> bool:
        return self.finished_at is not None

    def record(self, step: StepResult) -> None:
        if self.is_complete:
            raise RuntimeError(f"Run {self.run_number} is complete; cannot record {step.name}")
        self.steps.append(step)

    def complete(self) -> None:
        if not self.is_complete:
            self.finished_at = datetime.now(timezone.utc)

    def step(self, name: str) -> StepResult | None:
        for step in self.steps:
            if step.name == name:
                return step
        return None

    def output(self, stage: Stage, key: str) -> Any:
        """Read a detail produced by an earlier successful stage.

        Raises:
            KeyError: If the stage did not run successfully or lacks the key.
        """
        step = self.step(stage.value)
        if step is None or not step.success:
            raise KeyError(f"No successful '{stage.value}' step in this run")
        return step.details[key]

    @property
    def status(self) -> RunStatus:
        if self.cancelled:
            return RunStatus.CANCELLED
        if any(s.status is StepStatus.FAILURE and s.fatal for s in self.steps):
            return RunStatus.FAILED
        if not self.is_complete:
            return RunStatus.RUNNING
        return RunStatus.SUCCESS

    @property
    def success(self) -> bool:
        return self.status is RunStatus.SUCCESS

    @property
    def exit_code(self) -> int:
        """Process exit status mirroring the run outcome."""
        if self.status is RunStatus.SUCCESS:
            return 0
        if self.status is RunStatus.CANCELLED:
            return 130
        return 1
