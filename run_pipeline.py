"""CLI entry point for the deployment pipeline."""

import argparse
import os
import signal
import sys
from pathlib import Path

from dotenv import load_dotenv

from deploy_pipeline.config import ConfigError, PipelineConfig
from deploy_pipeline.logging_config import configure_logging
from deploy_pipeline.orchestrator import DeploymentPipeline, PipelineRun

EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build, publish, deploy and verify a web application"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (overrides LOG_LEVEL env var)",
    )
    parser.add_argument(
        "--run-number",
        type=int,
        default=None,
        help="Run counter used for the published version 0.0.N "
        "(overrides PIPELINE_RUN_NUMBER / GITHUB_RUN_NUMBER)",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        default=None,
        help="Checked-out source tree to build (overrides PIPELINE_WORKSPACE)",
    )
    parser.add_argument(
        "--skip-quality-gate",
        action="store_true",
        help="Do not run static analysis even if SONAR_HOST_URL is set",
    )
    parser.add_argument(
        "--redeploy",
        metavar="ARCHIVE",
        type=Path,
        default=None,
        help="Skip the build and redeploy an existing archive, then verify",
    )
    return parser


def load_config(args: argparse.Namespace) -> PipelineConfig:
    """Read configuration from the environment and apply CLI overrides."""
    overrides = {}
    if args.run_number is not None:
        overrides["PIPELINE_RUN_NUMBER"] = str(args.run_number)
    if args.workspace is not None:
        overrides["PIPELINE_WORKSPACE"] = str(args.workspace)
    if args.skip_quality_gate:
        overrides["SONAR_HOST_URL"] = ""

    return PipelineConfig.from_env({**os.environ, **overrides})


def print_summary(run: PipelineRun) -> None:
    print("\n--- Pipeline Summary ---")
    print(f"  run: {run.run_number} (version {run.version})")
    if run.commit_ref:
        print(f"  commit: {run.commit_ref}")
    for step in run.steps:
        if step.skipped:
            status = "SKIPPED"
        elif step.success:
            status = "OK"
        else:
            status = "FAILED" if step.fatal else "FAILED (ignored)"
        print(f"  {step.name}: {status} ({step.duration_seconds}s)")
        for key, value in step.details.items():
            print(f"    {key}: {value}")
        if step.error:
            print(f"    error: {step.error}")

    print(f"\nResult: {run.status.value.upper()}")


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    args = build_parser().parse_args(argv)
    configure_logging(level_override=args.log_level)

    try:
        config = load_config(args)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    pipeline = DeploymentPipeline(config)

    def _request_cancel(signum, frame):
        pipeline.cancel()

    signal.signal(signal.SIGINT, _request_cancel)
    signal.signal(signal.SIGTERM, _request_cancel)

    try:
        if args.redeploy is not None:
            run = pipeline.run_redeploy(args.redeploy)
        else:
            run = pipeline.run()
    finally:
        pipeline.close()

    print_summary(run)
    return run.exit_code


if __name__ == "__main__":
    sys.exit(main())
