"""BuildRunner - runs the build tool and locates its single output."""

import logging
from pathlib import Path
from typing import Optional

from .exceptions import BuildError
from .process import CommandResult, run_command

logger = logging.getLogger(__name__)


class BuildRunner:
    """Builds the workspace and returns the one archive it produced.

    Zero or several files matching the artifact glob after a successful
    build is a BuildError: the pipeline must know exactly which file to
    publish.
    """

    def __init__(
        self,
        command: str | list[str] = "mvn -B package",
        artifact_glob: str = "target/*.war",
        timeout: Optional[float] = None,
    ):
        self._command = command
        self._artifact_glob = artifact_glob
        self._timeout = timeout

    def find_artifact(self, workspace: Path) -> Path:
        """Return the single build output matching the artifact glob.

        Raises:
            BuildError: If zero or multiple files match.
        """
        matches = sorted(p for p in workspace.glob(self._artifact_glob) if p.is_file())
        if not matches:
            raise BuildError(f"Build produced no artifact matching {self._artifact_glob}")
        if len(matches) > 1:
            names = ", ".join(p.name for p in matches)
            raise BuildError(
                f"Build produced {len(matches)} artifacts matching "
                f"{self._artifact_glob}: {names}"
            )
        return matches[0]

    def build(self, workspace: Path) -> tuple[Path, CommandResult]:
        """Run the build command and locate its output.

        Returns:
            (artifact path, command result)

        Raises:
            BuildError: On non-zero exit or an ambiguous/missing artifact.
        """
        result = run_command(self._command, cwd=workspace, timeout=self._timeout)
        if not result.success:
            raise BuildError(
                f"Build failed (exit code {result.exit_code})",
                exit_code=result.exit_code,
                output=result.output_tail,
            )
        artifact = self.find_artifact(workspace)
        logger.info("Build produced %s", artifact.name)
        return artifact, result
