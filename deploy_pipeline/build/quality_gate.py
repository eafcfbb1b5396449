"""QualityGate - runs static analysis through the build tool."""

import logging
from pathlib import Path
from typing import Optional

from .exceptions import QualityGateError
from .process import CommandResult, run_command, split_command

logger = logging.getLogger(__name__)


class QualityGate:
    """Runs the analysis command against a quality-gate host.

    The host URL goes on the command line; the token is handed over in the
    SONAR_TOKEN environment variable so it never shows up in process
    listings or logs.
    """

    def __init__(
        self,
        host_url: str,
        token: Optional[str] = None,
        command: str = "mvn -B verify sonar:sonar",
        timeout: Optional[float] = None,
    ):
        self._host_url = host_url
        self._token = token
        self._command = command
        self._timeout = timeout

    def analyze(self, workspace: Path) -> CommandResult:
        """Run analysis in the workspace.

        Raises:
            QualityGateError: If the analysis command exits non-zero.
            BuildError: If the command cannot be started or times out.
        """
        args = split_command(self._command) + [f"-Dsonar.host.url={self._host_url}"]
        extra_env = {"SONAR_TOKEN": self._token} if self._token else None

        result = run_command(args, cwd=workspace, extra_env=extra_env, timeout=self._timeout)
        if not result.success:
            raise QualityGateError(
                f"Quality gate failed (exit code {result.exit_code})",
                exit_code=result.exit_code,
                output=result.output_tail,
            )
        logger.info("Quality gate passed")
        return result
