"""Exceptions for the build module."""


class BuildError(Exception):
    """Raised when the build fails or does not yield exactly one artifact."""

    def __init__(self, message: str, exit_code: int | None = None, output: str = ""):
        self.exit_code = exit_code
        self.output = output
        super().__init__(message)


class CheckoutError(BuildError):
    """Raised when the source commit of the workspace cannot be resolved."""

    pass


class QualityGateError(BuildError):
    """Raised when static analysis reports a failed quality gate."""

    pass
