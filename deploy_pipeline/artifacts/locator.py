"""ArtifactLocator - resolves the newest matching asset in a Nexus repository."""

import logging
import re
from typing import Iterator, Optional

import httpx

from deploy_pipeline.config import Credentials

from .exceptions import ArtifactStoreError, NotFoundError
from .models import ArtifactRef

logger = logging.getLogger(__name__)

SEARCH_ASSETS_PATH = "/service/rest/v1/search/assets"


class ArtifactLocator:
    """Finds the most recent artifact matching a name pattern.

    The store listing is walked page by page and every asset whose file
    name is ``<artifact_id>-<numeric version>.<extension>`` is a candidate.
    The LAST candidate in listing order wins: the store is assumed to
    return assets in stable, append order, so the most recently uploaded
    asset comes last. Identical versions are not deduplicated.

    Example usage:
        locator = ArtifactLocator("http://nexus:8081", "maven-releases")
        ref = locator.locate("com.example", "app", "war")
        print(ref.download_url)
    """

    def __init__(
        self,
        store_url: str,
        repository: str,
        credentials: Optional[Credentials] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        """Initialize the locator.

        Args:
            store_url: Store root URL (without the /repository suffix).
            repository: Repository name to search.
            credentials: Basic-auth pair for the store.
            client: Pre-built httpx client (for testing).
            timeout: Per-request timeout in seconds.
        """
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

    @staticmethod
    def name_pattern(artifact_id: str, extension: str) -> re.Pattern:
        """Pattern for '<artifact_id>-<version>.<extension>' file names."""
        return re.compile(
            rf"^{re.escape(artifact_id)}-(?P<version>\d+(?:\.\d+)*)\.{re.escape(extension)}$"
        )

    def list_assets(
        self, group_id: str, artifact_id: str, extension: str
    ) -> Iterator[dict]:
        """Yield asset entries from the store, following continuation tokens.

        Raises:
            ArtifactStoreError: If a listing page cannot be fetched.
        """
        client = self._get_client()
        params = {
            "repository": self._repository,
            "maven.groupId": group_id,
            "maven.artifactId": artifact_id,
            "maven.extension": extension,
        }
        url = f"{self._store_url}{SEARCH_ASSETS_PATH}"

        while True:
            try:
                response = client.get(url, params=params)
            except httpx.HTTPError as e:
                raise ArtifactStoreError(
                    f"Failed to list assets in '{self._repository}': {e}"
                ) from e
            if not response.is_success:
                raise ArtifactStoreError(
                    f"Asset listing for '{self._repository}' returned "
                    f"HTTP {response.status_code}",
                    status_code=response.status_code,
                )
            try:
                page = response.json()
            except ValueError as e:
                raise ArtifactStoreError(
                    f"Asset listing for '{self._repository}' is not valid JSON"
                ) from e

            yield from page.get("items", [])

            token = page.get("continuationToken")
            if not token:
                return
            params = {**params, "continuationToken": token}

    def locate(self, group_id: str, artifact_id: str, extension: str) -> ArtifactRef:
        """Resolve the newest matching artifact.

        Args:
            group_id: Maven group coordinate.
            artifact_id: Maven artifact coordinate.
            extension: Artifact file extension, e.g. "war".

        Returns:
            ArtifactRef for the last matching asset in listing order.

        Raises:
            NotFoundError: If no asset matches.
            ArtifactStoreError: If the listing cannot be read.
        """
        pattern = self.name_pattern(artifact_id, extension)
        newest: Optional[ArtifactRef] = None
        matches = 0

        for asset in self.list_assets(group_id, artifact_id, extension):
            download_url = asset.get("downloadUrl")
            if not download_url:
                continue
            filename = download_url.rsplit("/", 1)[-1]
            match = pattern.match(filename)
            if match is None:
                continue
            matches += 1
            newest = ArtifactRef(
                group_id=group_id,
                artifact_id=artifact_id,
                version=match.group("version"),
                extension=extension,
                download_url=download_url,
            )

        if newest is None:
            raise NotFoundError(self._repository, artifact_id, extension)

        logger.info(
            "Resolved %s version %s (%d matching assets)",
            artifact_id,
            newest.version,
            matches,
        )
        return newest
