"""Exceptions for the deployment module."""


class DeployError(Exception):
    """Raised when an application-server manager command fails.

    Attributes:
        command: Manager command that failed (undeploy, expire, reload, deploy).
        status_code: HTTP status, when the server answered at all.
        detail: First line of the manager's response body, if any.
    """

    def __init__(
        self,
        command: str,
        path: str,
        status_code: int | None = None,
        detail: str | None = None,
    ):
        self.command = command
        self.path = path
        self.status_code = status_code
        self.detail = detail
        msg = f"'{command}' failed for context path {path}"
        if status_code is not None:
            msg += f" (HTTP {status_code})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)

    @property
    def no_such_context(self) -> bool:
        """True when the server reports nothing is deployed at the path."""
        return bool(self.detail) and "no context exists" in self.detail.lower()
