"""ArtifactPublisher - uploads build output into a Maven repository."""

import logging
from pathlib import Path
from typing import Optional

import httpx

from deploy_pipeline.config import Credentials

from .exceptions import PublishError

logger = logging.getLogger(__name__)


class ArtifactPublisher:
    """Publishes a built archive under Maven coordinates.

    Uploads go to
    ``{store_url}/repository/{repo}/{group/as/path}/{artifact}/{version}/{artifact}-{version}.{ext}``.
    Release repositories reject a second upload of the same version, which
    surfaces as PublishError.
    """

    def __init__(
        self,
        store_url: str,
        repository: str,
        credentials: Optional[Credentials] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self._store_url = store_url.rstrip("/")
        self._repository = repository
        self._credentials = credentials
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                auth=self._credentials.as_auth() if self._credentials else None,
                timeout=self._timeout,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def upload_url(
        self, group_id: str, artifact_id: str, version: str, extension: str
    ) -> str:
        """Build the repository URL an artifact version is stored at."""
        group_path = group_id.replace(".", "/")
        return (
            f"{self._store_url}/repository/{self._repository}/{group_path}/"
            f"{artifact_id}/{version}/{artifact_id}-{version}.{extension}"
        )

    def publish(
        self,
        artifact_path: Path,
        group_id: str,
        artifact_id: str,
        version: str,
        extension: Optional[str] = None,
    ) -> str:
        """Upload a local archive as the given version.

        Args:
            artifact_path: Built archive to upload.
            group_id: Maven group coordinate.
            artifact_id: Maven artifact coordinate.
            version: Version to publish under.
            extension: Defaults to the archive's own suffix.

        Returns:
            URL the artifact was uploaded to.

        Raises:
            PublishError: On a rejected upload, transport or I/O failure.
        """
        extension = extension or artifact_path.suffix.lstrip(".")
        url = self.upload_url(group_id, artifact_id, version, extension)
        client = self._get_client()

        try:
            size = artifact_path.stat().st_size
            with artifact_path.open("rb") as fh:
                response = client.put(
                    url, content=fh, headers={"Content-Length": str(size)}
                )
        except OSError as e:
            raise PublishError(f"Cannot read {artifact_path}: {e}") from e
        except httpx.HTTPError as e:
            raise PublishError(f"Upload of {artifact_id} {version} failed: {e}") from e

        if not response.is_success:
            raise PublishError(
                f"Store rejected {artifact_id} {version} with HTTP {response.status_code}",
                status_code=response.status_code,
            )

        logger.info("Published %s %s to %s", artifact_id, version, self._repository)
        return url
