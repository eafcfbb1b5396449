"""DeploymentController - force-replaces an application on a Tomcat server."""

import logging
from pathlib import Path
from typing import Optional

import httpx

from .exceptions import DeployError
from .models import DeploymentReport, DeploymentTarget, SubStepOutcome

logger = logging.getLogger(__name__)

MANAGER_TEXT_PATH = "/manager/text"


class DeploymentController:
    """Drives the text manager API of one deployment target.

    A redeploy is four strictly ordered commands:

    1. undeploy - remove the running application. Nothing deployed at the
       path is a no-op, not an error.
    2. expire   - expire sessions of the path (best-effort).
    3. reload   - reload the path (best-effort).
    4. deploy   - upload the new archive with update=true. The only command
       whose failure fails the redeploy.

    Steps 1-3 only defeat server-side caching of the previous version.
    No command is retried here.

    Example usage:
        target = DeploymentTarget("http://tomcat:8080", "/app", creds)
        report = DeploymentController(target).redeploy(Path("app-0.0.42.war"))
    """

    def __init__(
        self,
        target: DeploymentTarget,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
        expire_idle_minutes: int = 0,
    ):
        """Initialize the controller.

        Args:
            target: Server and context path to operate on.
            client: Pre-built httpx client (for testing).
            timeout: Per-request timeout in seconds.
            expire_idle_minutes: Sessions idle at least this long are expired.
        """
        self._target = target
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._expire_idle = expire_idle_minutes

    @property
    def target(self) -> DeploymentTarget:
        return self._target

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            creds = self._target.credentials
            self._client = httpx.Client(
                auth=creds.as_auth() if creds else None,
                timeout=self._timeout,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def _command(
        self,
        command: str,
        params: Optional[dict] = None,
        upload: Optional[Path] = None,
    ) -> str:
        """Issue one manager command and return its 'OK' status line.

        Raises:
            DeployError: On transport failure, non-2xx, or a non-OK body.
        """
        path = self._target.app_path
        url = f"{self._target.server_url}{MANAGER_TEXT_PATH}/{command}"
        query = {"path": path, **(params or {})}
        client = self._get_client()

        try:
            if upload is None:
                response = client.get(url, params=query)
            else:
                size = upload.stat().st_size
                with upload.open("rb") as fh:
                    response = client.put(
                        url,
                        params=query,
                        content=fh,
                        headers={"Content-Length": str(size)},
                    )
        except OSError as e:
            raise DeployError(
                command, path, detail=f"cannot read {upload.name}: {e}"
            ) from e
        except httpx.HTTPError as e:
            raise DeployError(command, path, detail=str(e)) from e

        body = response.text.strip()
        status_line = body.splitlines()[0] if body else ""
        if not response.is_success or not status_line.startswith("OK"):
            raise DeployError(
                command, path, status_code=response.status_code, detail=status_line
            )
        logger.debug("%s %s: %s", command, path, status_line)
        return status_line

    def undeploy(self) -> str:
        """Remove the deployed application. Idempotent."""
        try:
            return self._command("undeploy")
        except DeployError as e:
            if e.no_such_context:
                logger.info("Nothing deployed at %s, undeploy is a no-op", e.path)
                return f"No application deployed at {e.path}"
            raise

    def expire(self) -> str:
        """Expire sessions for the context path."""
        return self._command("expire", {"idle": str(self._expire_idle)})

    def reload(self) -> str:
        """Reload the context path."""
        return self._command("reload")

    def deploy(self, artifact_path: Path) -> str:
        """Upload and deploy an archive, replacing any existing application.

        Raises:
            DeployError: If the archive cannot be read or the server refuses it.
        """
        return self._command("deploy", {"update": "true"}, upload=artifact_path)

    def redeploy(self, artifact_path: Path) -> DeploymentReport:
        """Run undeploy -> expire -> reload -> deploy.

        Failures of the first three commands are logged and skipped.

        Returns:
            DeploymentReport with one outcome per command.

        Raises:
            DeployError: If the final deploy fails.
        """
        report = DeploymentReport(app_path=self._target.app_path)

        for name, step in (
            ("undeploy", self.undeploy),
            ("expire", self.expire),
            ("reload", self.reload),
        ):
            try:
                message = step()
                report.outcomes.append(SubStepOutcome(name, True, message))
            except DeployError as e:
                logger.warning("Ignoring failed %s: %s", name, e)
                report.outcomes.append(SubStepOutcome(name, False, str(e)))

        message = self.deploy(artifact_path)
        report.outcomes.append(SubStepOutcome("deploy", True, message))
        logger.info("Deployed %s to %s", artifact_path.name, self._target.app_path)
        return report
