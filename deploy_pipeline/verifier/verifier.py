"""DeploymentVerifier - single health probe after a grace interval."""

import logging
import time
from typing import Callable, Optional

import httpx

from .exceptions import VerificationError

logger = logging.getLogger(__name__)


class DeploymentVerifier:
    """Confirms a freshly deployed application is serving.

    Waits ``grace_seconds`` for the server to activate the application,
    then issues exactly one GET. Only HTTP 200 passes. An application that
    takes longer than the grace interval to come up fails verification;
    raise the interval rather than expecting a retry.
    """

    def __init__(
        self,
        grace_seconds: float = 30.0,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._grace_seconds = grace_seconds
        self._timeout = timeout_seconds
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout)
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def verify(self, url: str) -> int:
        """Probe the URL once after the grace interval.

        Returns:
            The HTTP status (always 200).

        Raises:
            VerificationError: On any other status, timeout or transport error.
        """
        if self._grace_seconds > 0:
            logger.info("Waiting %.1fs before probing %s", self._grace_seconds, url)
            self._sleep(self._grace_seconds)

        try:
            response = self._get_client().get(url, timeout=self._timeout)
        except httpx.TimeoutException as e:
            raise VerificationError(url, reason=f"timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise VerificationError(url, reason=str(e)) from e

        if response.status_code != 200:
            raise VerificationError(url, status=response.status_code)

        logger.info("%s answered HTTP 200", url)
        return response.status_code
