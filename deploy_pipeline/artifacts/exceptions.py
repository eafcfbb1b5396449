"""Exceptions for the artifacts module."""


class ArtifactError(Exception):
    """Base exception for all artifact-store errors."""

    pass


class ArtifactStoreError(ArtifactError):
    """Raised when the artifact store listing cannot be read."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(ArtifactError):
    """Raised when no asset in the store matches the requested artifact."""

    def __init__(self, repository: str, artifact_id: str, extension: str):
        self.repository = repository
        self.artifact_id = artifact_id
        self.extension = extension
        super().__init__(
            f"No '{artifact_id}-<version>.{extension}' asset found "
            f"in repository '{repository}'"
        )


class DownloadError(ArtifactError):
    """Raised when an artifact cannot be downloaded to the scratch directory."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class PublishError(ArtifactError):
    """Raised when the store rejects an upload (e.g. duplicate version)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
