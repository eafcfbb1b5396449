"""Artifact store access: locate, fetch and publish versioned archives.

Public API:
    - ArtifactLocator: Resolves the newest matching asset in a repository
    - ArtifactFetcher: Downloads an asset into a scratch directory
    - ArtifactPublisher: Uploads a built archive under Maven coordinates
    - ArtifactRef: Resolved artifact data model
    - artifact_version: Run number to version string
    - ArtifactError: Base exception for artifact-store failures
"""

from .exceptions import (
    ArtifactError,
    ArtifactStoreError,
    DownloadError,
    NotFoundError,
    PublishError,
)
from .fetcher import ArtifactFetcher
from .locator import ArtifactLocator
from .models import ArtifactRef, artifact_version
from .publisher import ArtifactPublisher

__all__ = [
    "ArtifactLocator",
    "ArtifactFetcher",
    "ArtifactPublisher",
    "ArtifactRef",
    "artifact_version",
    "ArtifactError",
    "ArtifactStoreError",
    "NotFoundError",
    "DownloadError",
    "PublishError",
]
