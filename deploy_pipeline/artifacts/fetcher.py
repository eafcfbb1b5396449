"""ArtifactFetcher - downloads a resolved artifact into a scratch directory."""

import logging
from pathlib import Path
from typing import Optional

import httpx

from deploy_pipeline.config import Credentials

from .exceptions import DownloadError
from .models import ArtifactRef

logger = logging.getLogger(__name__)


class ArtifactFetcher:
    """Downloads artifacts, never leaving a stale archive behind.

    Before each download every file with the artifact's extension is
    removed from the scratch directory, so the deploy step can only ever
    pick up the file fetched by this run. The scratch directory belongs to
    one in-flight run at a time.
    """

    CHUNK_SIZE = 64 * 1024

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self._credentials = credentials
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                auth=self._credentials.as_auth() if self._credentials else None,
                timeout=self._timeout,
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    @staticmethod
    def clear_stale(scratch_dir: Path, extension: str) -> list[Path]:
        """Delete existing '*.<extension>' files from the scratch directory.

        Returns:
            Paths that were removed.
        """
        removed = []
        for stale in sorted(scratch_dir.glob(f"*.{extension}")):
            if stale.is_file():
                stale.unlink()
                removed.append(stale)
                logger.debug("Removed stale artifact %s", stale)
        return removed

    def fetch(self, ref: ArtifactRef, scratch_dir: Path) -> Path:
        """Download the artifact and return its local path.

        Args:
            ref: Resolved artifact to download.
            scratch_dir: Directory to download into. Created if missing.

        Returns:
            Path of the downloaded file.

        Raises:
            DownloadError: On a non-2xx response, transport or I/O failure.
        """
        try:
            scratch_dir.mkdir(parents=True, exist_ok=True)
            removed = self.clear_stale(scratch_dir, ref.extension)
        except OSError as e:
            raise DownloadError(f"Cannot prepare scratch directory {scratch_dir}: {e}") from e
        if removed:
            logger.info("Removed %d stale artifact(s) from %s", len(removed), scratch_dir)

        target = scratch_dir / ref.filename
        client = self._get_client()
        try:
            with client.stream("GET", ref.download_url) as response:
                if not response.is_success:
                    raise DownloadError(
                        f"Download of {ref.filename} returned HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                with target.open("wb") as fh:
                    for chunk in response.iter_bytes(self.CHUNK_SIZE):
                        fh.write(chunk)
        except DownloadError:
            target.unlink(missing_ok=True)
            raise
        except (httpx.HTTPError, OSError) as e:
            target.unlink(missing_ok=True)
            raise DownloadError(f"Download of {ref.filename} failed: {e}") from e

        logger.info("Downloaded %s (%d bytes)", target, target.stat().st_size)
        return target
