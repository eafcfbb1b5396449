"""DeploymentPipeline - sequences build, publish, redeploy and verify."""

import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from deploy_pipeline.artifacts import (
    ArtifactFetcher,
    ArtifactLocator,
    ArtifactPublisher,
    ArtifactRef,
)
from deploy_pipeline.build import BuildRunner, QualityGate, SourceCheckout
from deploy_pipeline.config import PipelineConfig
from deploy_pipeline.deployment import DeploymentController, DeploymentTarget
from deploy_pipeline.verifier import DeploymentVerifier

from .models import PipelineRun, Stage, StageDefinition, StepResult, StepStatus

logger = logging.getLogger(__name__)

# Exception attributes copied into a failed step's details
_ERROR_ATTRIBUTES = ("status", "status_code", "exit_code")


class DeploymentPipeline:
    """Runs the deployment pipeline one stage at a time.

    Stages come from an ordered table (see stages()); each carries a
    fatal_on_error policy. A fatal failure halts the run and the remaining
    stages are recorded as skipped. A best-effort failure is recorded and
    the run continues.

    cancel() may be called from another thread (e.g. a signal handler). It
    takes effect at the next stage boundary; a stage already in flight is
    allowed to finish.

    Example:
        run = DeploymentPipeline(PipelineConfig.from_env()).run()
        sys.exit(run.exit_code)
    """

    def __init__(
        self,
        config: PipelineConfig,
        checkout: Optional[SourceCheckout] = None,
        quality_gate: Optional[QualityGate] = None,
        builder: Optional[BuildRunner] = None,
        publisher: Optional[ArtifactPublisher] = None,
        locator: Optional[ArtifactLocator] = None,
        fetcher: Optional[ArtifactFetcher] = None,
        controller: Optional[DeploymentController] = None,
        verifier: Optional[DeploymentVerifier] = None,
    ):
        self._config = config
        self._checkout = checkout
        self._quality_gate = quality_gate
        self._builder = builder
        self._publisher = publisher
        self._locator = locator
        self._fetcher = fetcher
        self._controller = controller
        self._verifier = verifier
        self._cancel_event = threading.Event()
        self._owned: list[Any] = []

    @property
    def config(self) -> PipelineConfig:
        return self._config

    def _get_checkout(self) -> SourceCheckout:
        if self._checkout is None:
            self._checkout = SourceCheckout(self._config.workspace, self._config.commit_ref)
        return self._checkout

    def _get_quality_gate(self) -> QualityGate:
        if self._quality_gate is None:
            self._quality_gate = QualityGate(
                host_url=self._config.sonar_host_url,
                token=self._config.sonar_token,
                command=self._config.quality_gate_command,
                timeout=self._config.build_timeout,
            )
        return self._quality_gate

    def _get_builder(self) -> BuildRunner:
        if self._builder is None:
            self._builder = BuildRunner(
                command=self._config.build_command,
                artifact_glob=self._config.artifact_glob,
                timeout=self._config.build_timeout,
            )
        return self._builder

    def _get_publisher(self) -> ArtifactPublisher:
        if self._publisher is None:
            self._publisher = ArtifactPublisher(
                self._config.store_url,
                self._config.store_repository,
                credentials=self._config.store_credentials,
                timeout=self._config.http_timeout,
            )
            self._owned.append(self._publisher)
        return self._publisher

    def _get_locator(self) -> ArtifactLocator:
        if self._locator is None:
            self._locator = ArtifactLocator(
                self._config.store_url,
                self._config.store_repository,
                credentials=self._config.store_credentials,
                timeout=self._config.http_timeout,
            )
            self._owned.append(self._locator)
        return self._locator

    def _get_fetcher(self) -> ArtifactFetcher:
        if self._fetcher is None:
            self._fetcher = ArtifactFetcher(
                credentials=self._config.store_credentials,
                timeout=self._config.http_timeout,
            )
            self._owned.append(self._fetcher)
        return self._fetcher

    def _get_controller(self) -> DeploymentController:
        if self._controller is None:
            target = DeploymentTarget(
                server_url=self._config.server_url,
                app_path=self._config.app_path,
                credentials=self._config.server_credentials,
                public_url=self._config.public_url,
            )
            self._controller = DeploymentController(
                target,
                timeout=self._config.http_timeout,
                expire_idle_minutes=self._config.expire_idle_minutes,
            )
            self._owned.append(self._controller)
        return self._controller

    def _get_verifier(self) -> DeploymentVerifier:
        if self._verifier is None:
            self._verifier = DeploymentVerifier(
                grace_seconds=self._config.grace_seconds,
                timeout_seconds=self._config.verify_timeout,
            )
            self._owned.append(self._verifier)
        return self._verifier

    def close(self) -> None:
        """Close the HTTP clients of collaborators this pipeline built.

        Injected collaborators are left to their owner.
        """
        for component in self._owned:
            component.close()
        self._owned.clear()

    def __enter__(self) -> "DeploymentPipeline":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------- Cancellation --------------------

    def cancel(self) -> None:
        """Request cancellation at the next stage boundary."""
        if not self._cancel_event.is_set():
            logger.warning("Cancellation requested; stopping after the current step")
        self._cancel_event.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    # -------------------- Stage handlers --------------------

    def _checkout_stage(self, run: PipelineRun) -> dict[str, Any]:
        run.commit_ref = self._get_checkout().resolve()
        return {"commit": run.commit_ref}

    def _quality_gate_stage(self, run: PipelineRun) -> dict[str, Any]:
        result = self._get_quality_gate().analyze(self._config.workspace)
        return {"host": self._config.sonar_host_url, "output": result.output_tail}

    def _build_stage(self, run: PipelineRun) -> dict[str, Any]:
        artifact, result = self._get_builder().build(self._config.workspace)
        return {
            "artifact_path": str(artifact),
            "artifact_name": artifact.name,
            "output": result.output_tail,
        }

    def _publish_stage(self, run: PipelineRun) -> dict[str, Any]:
        artifact = Path(run.output(Stage.BUILD, "artifact_path"))
        url = self._get_publisher().publish(
            artifact,
            self._config.group_id,
            self._config.artifact_id,
            run.version,
            self._config.packaging,
        )
        return {"version": run.version, "url": url}

    def _locate_stage(self, run: PipelineRun) -> dict[str, Any]:
        ref = self._get_locator().locate(
            self._config.group_id, self._config.artifact_id, self._config.packaging
        )
        if ref.version != run.version:
            logger.warning(
                "Newest %s in store is %s, this run published %s",
                ref.artifact_id,
                ref.version,
                run.version,
            )
        return ref.to_dict()

    def _fetch_stage(self, run: PipelineRun) -> dict[str, Any]:
        located = run.step(Stage.LOCATE.value)
        if located is None or not located.success:
            raise KeyError("No successful 'locate' step in this run")
        ref = ArtifactRef.from_dict(located.details)
        path = self._get_fetcher().fetch(ref, self._config.scratch_dir)
        return {"local_path": str(path), "version": ref.version}

    def _undeploy_stage(self, run: PipelineRun) -> dict[str, Any]:
        return {"message": self._get_controller().undeploy()}

    def _invalidate_stage(self, run: PipelineRun) -> dict[str, Any]:
        return {"message": self._get_controller().expire()}

    def _reload_stage(self, run: PipelineRun) -> dict[str, Any]:
        return {"message": self._get_controller().reload()}

    def _deploy_stage(self, run: PipelineRun) -> dict[str, Any]:
        artifact = Path(run.output(Stage.FETCH, "local_path"))
        return {
            "app_path": self._config.app_path,
            "message": self._get_controller().deploy(artifact),
        }

    def _verify_stage(self, run: PipelineRun) -> dict[str, Any]:
        url = self._config.public_url
        return {"url": url, "status": self._get_verifier().verify(url)}

    def stages(self) -> list[StageDefinition]:
        """The stage table for a full pipeline run, in execution order."""
        quality_skip = None
        if not self._config.quality_gate_enabled:
            quality_skip = "no quality-gate host configured"

        return [
            StageDefinition(Stage.CHECKOUT, self._checkout_stage),
            StageDefinition(
                Stage.QUALITY_GATE,
                self._quality_gate_stage,
                fatal_on_error=self._config.quality_gate_fatal,
                skip_reason=quality_skip,
            ),
            StageDefinition(Stage.BUILD, self._build_stage),
            StageDefinition(Stage.PUBLISH, self._publish_stage),
            StageDefinition(Stage.LOCATE, self._locate_stage),
            StageDefinition(Stage.FETCH, self._fetch_stage),
            StageDefinition(Stage.UNDEPLOY, self._undeploy_stage, fatal_on_error=False),
            StageDefinition(Stage.INVALIDATE, self._invalidate_stage, fatal_on_error=False),
            StageDefinition(Stage.RELOAD, self._reload_stage, fatal_on_error=False),
            StageDefinition(Stage.DEPLOY, self._deploy_stage),
            StageDefinition(Stage.VERIFY, self._verify_stage),
        ]

    # -------------------- Execution --------------------

    @staticmethod
    def _skip_step(name: str, reason: str) -> StepResult:
        """Record a step as skipped."""
        return StepResult(
            name=name,
            status=StepStatus.SKIPPED,
            duration_seconds=0.0,
            details={"reason": reason},
        )

    @staticmethod
    def _log_status_line(step: StepResult) -> None:
        level = logging.INFO
        if step.status is StepStatus.FAILURE:
            level = logging.ERROR if step.fatal else logging.WARNING
        logger.log(
            level,
            "step=%s status=%s elapsed=%.2fs",
            step.name,
            step.status.value,
            step.duration_seconds,
            extra={
                "step": step.name,
                "status": step.status.value,
                "elapsed": step.duration_seconds,
            },
        )

    def _run_step(self, definition: StageDefinition, run: PipelineRun) -> StepResult:
        """Run one stage with timing and error isolation."""
        start = time.monotonic()
        try:
            details = dict(definition.handler(run))
        except Exception as e:
            duration = time.monotonic() - start
            if definition.fatal_on_error:
                logger.exception("Step '%s' failed", definition.name)
            else:
                logger.warning("Best-effort step '%s' failed: %s", definition.name, e)
            details = {
                attr: getattr(e, attr)
                for attr in _ERROR_ATTRIBUTES
                if getattr(e, attr, None) is not None
            }
            return StepResult(
                name=definition.name,
                status=StepStatus.FAILURE,
                duration_seconds=round(duration, 2),
                details=details,
                output=getattr(e, "output", "") or "",
                error=str(e),
                fatal=definition.fatal_on_error,
            )

        duration = time.monotonic() - start
        # Command output travels separately from structured details
        output = details.pop("output", "")
        return StepResult(
            name=definition.name,
            status=StepStatus.SUCCESS,
            duration_seconds=round(duration, 2),
            details=details,
            output=output,
            fatal=definition.fatal_on_error,
        )

    def execute(self, definitions: list[StageDefinition]) -> PipelineRun:
        """Execute a stage table as one run.

        Returns:
            The completed PipelineRun.
        """
        run = PipelineRun(
            run_number=self._config.run_number,
            started_at=datetime.now(timezone.utc),
            commit_ref=self._config.commit_ref,
        )
        halted_by: Optional[str] = None

        for definition in definitions:
            if halted_by is None and self._cancel_event.is_set():
                run.cancelled = True
                halted_by = "run cancelled"

            if halted_by is not None:
                step = self._skip_step(definition.name, halted_by)
            elif definition.skip_reason:
                step = self._skip_step(definition.name, definition.skip_reason)
            else:
                step = self._run_step(definition, run)
                if step.status is StepStatus.FAILURE and definition.fatal_on_error:
                    halted_by = f"'{definition.name}' failed"

            run.record(step)
            self._log_status_line(step)

        # A cancel that arrived while a stage was failing outranks the failure
        if self._cancel_event.is_set():
            run.cancelled = True
        run.complete()
        logger.info(
            "Run %d finished with status %s", run.run_number, run.status.value
        )
        return run

    def run(self) -> PipelineRun:
        """Execute the full pipeline.

        Steps:
            1. Resolve the source commit
            2. Quality gate (skipped when not configured)
            3. Build exactly one archive
            4. Publish it as version 0.0.<run_number>
            5. Locate the newest archive in the store
            6. Fetch it into the scratch directory
            7. Undeploy, invalidate, reload (best-effort)
            8. Deploy
            9. Verify the public URL answers 200

        Returns:
            PipelineRun with per-step results.
        """
        return self.execute(self.stages())

    def run_redeploy(self, artifact_path: Path) -> PipelineRun:
        """Redeploy an existing archive and verify it, skipping the build.

        Returns:
            PipelineRun with redeploy and verify steps.
        """

        def redeploy_stage(run: PipelineRun) -> dict[str, Any]:
            report = self._get_controller().redeploy(artifact_path)
            return {
                "app_path": report.app_path,
                "deployed": report.deployed,
                "commands": {o.command: o.success for o in report.outcomes},
            }

        return self.execute(
            [
                StageDefinition(Stage.REDEPLOY, redeploy_stage),
                StageDefinition(Stage.VERIFY, self._verify_stage),
            ]
        )
