"""SourceCheckout - identifies the commit the pipeline builds."""

import logging
from pathlib import Path
from typing import Optional

from .exceptions import BuildError, CheckoutError
from .process import run_command

logger = logging.getLogger(__name__)


class SourceCheckout:
    """Resolves the commit checked out in the workspace.

    The checkout itself belongs to the trigger (the CI runner clones the
    repository). A commit reference supplied by the trigger is used as-is;
    otherwise git is asked for HEAD.
    """

    def __init__(self, workspace: Path, commit_ref: Optional[str] = None):
        self._workspace = workspace
        self._commit_ref = commit_ref

    def resolve(self) -> str:
        """Return the commit reference for this run.

        Raises:
            CheckoutError: If the workspace is missing or not a git checkout.
        """
        if self._commit_ref:
            return self._commit_ref
        if not self._workspace.is_dir():
            raise CheckoutError(f"Workspace {self._workspace} does not exist")

        try:
            result = run_command(
                ["git", "-C", str(self._workspace), "rev-parse", "HEAD"],
                cwd=self._workspace,
                timeout=60,
            )
        except BuildError as e:
            raise CheckoutError(str(e)) from e
        if not result.success:
            raise CheckoutError(
                f"Cannot resolve HEAD in {self._workspace}",
                exit_code=result.exit_code,
                output=result.output_tail,
            )

        commit = result.output.strip()
        logger.info("Workspace %s is at %s", self._workspace, commit)
        return commit
