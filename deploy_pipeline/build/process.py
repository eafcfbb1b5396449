"""Thin subprocess wrapper shared by the external build collaborators."""

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .exceptions import BuildError

logger = logging.getLogger(__name__)

# Keep only the end of long tool output in step results
OUTPUT_TAIL_LINES = 40


@dataclass
class CommandResult:
    """Exit code and combined stdout/stderr of an external command."""

    args: list[str]
    exit_code: int
    output: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def output_tail(self) -> str:
        return "\n".join(self.output.splitlines()[-OUTPUT_TAIL_LINES:])


def split_command(command: str | list[str]) -> list[str]:
    """Split a configured command line into argv form."""
    if isinstance(command, str):
        return shlex.split(command)
    return list(command)


def run_command(
    command: str | list[str],
    cwd: Path,
    extra_env: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
) -> CommandResult:
    """Run an external command to completion.

    Args:
        command: Command line or argv list.
        cwd: Working directory.
        extra_env: Variables added to the inherited environment. Values
            are never logged.
        timeout: Seconds before the command is killed.

    Raises:
        BuildError: If the command cannot be started or times out.
    """
    args = split_command(command)
    env = {**os.environ, **(extra_env or {})}
    logger.info("Running %s in %s", shlex.join(args), cwd)

    try:
        proc = subprocess.run(
            args,
            cwd=str(cwd),
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise BuildError(f"Command not found: {args[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise BuildError(f"{args[0]} timed out after {timeout}s") from e

    return CommandResult(args=args, exit_code=proc.returncode, output=proc.stdout or "")
