"""Exceptions for the verifier module."""


class VerificationError(Exception):
    """Raised when the post-deploy probe does not return HTTP 200.

    Attributes:
        url: URL that was probed.
        status: HTTP status received, or None if no response arrived.
    """

    def __init__(self, url: str, status: int | None = None, reason: str | None = None):
        self.url = url
        self.status = status
        self.reason = reason
        if status is not None:
            msg = f"{url} answered HTTP {status}, expected 200"
        else:
            msg = f"{url} did not respond"
            if reason:
                msg += f": {reason}"
        super().__init__(msg)
