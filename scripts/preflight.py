#!/usr/bin/env python3
"""Preflight check for run_pipeline.py.

Validates that all required environment variables and tools are present
before a pipeline run is triggered. Nothing is built or deployed.

Run from project root:
    python scripts/preflight.py
"""

import os
import shutil
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

sys.path.insert(0, str(PROJECT_ROOT))
from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

from deploy_pipeline.build.process import split_command  # noqa: E402
from deploy_pipeline.config import ConfigError, PipelineConfig  # noqa: E402

REQUIRED_ENV_VARS = [
    "NEXUS_URL",
    "NEXUS_USERNAME",
    "NEXUS_PASSWORD",
    "ARTIFACT_GROUP_ID",
    "ARTIFACT_ID",
    "TOMCAT_URL",
    "TOMCAT_USERNAME",
    "TOMCAT_PASSWORD",
]


def check_prerequisites() -> list[str]:
    errors = []

    for var in REQUIRED_ENV_VARS:
        if not os.environ.get(var):
            errors.append(f"Missing env var: {var}")
    if not (os.environ.get("PIPELINE_RUN_NUMBER") or os.environ.get("GITHUB_RUN_NUMBER")):
        errors.append("Missing env var: PIPELINE_RUN_NUMBER (or GITHUB_RUN_NUMBER)")
    if errors:
        return errors

    try:
        config = PipelineConfig.from_env()
    except ConfigError as e:
        return [str(e)]

    if not config.workspace.is_dir():
        errors.append(f"Workspace not found: {config.workspace}")

    tools = {"git", split_command(config.build_command)[0]}
    if config.quality_gate_enabled:
        tools.add(split_command(config.quality_gate_command)[0])
    for tool in sorted(tools):
        if shutil.which(tool) is None:
            errors.append(f"Tool not on PATH: {tool}")

    return errors


def main() -> int:
    print("Checking prerequisites ...\n")
    errors = check_prerequisites()

    if errors:
        for err in errors:
            print(f"  ✗ {err}")
        print(
            "\nSetup instructions:"
            "\n  1. Set the store and server variables in .env or export them"
            "\n  2. Set PIPELINE_RUN_NUMBER (CI runners provide GITHUB_RUN_NUMBER)"
            "\n  3. Install git and the build tool on the runner"
        )
        return 1

    for var in REQUIRED_ENV_VARS:
        print(f"  ✓ {var}")
    print("\nAll prerequisites met. Run 'python run_pipeline.py' to deploy.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
