"""Data models for the artifacts module."""

from dataclasses import dataclass
from typing import Any


def artifact_version(run_number: int) -> str:
    """Derive the published version for a pipeline run.

    Every run publishes ``0.0.<run_number>``, so versions never collide in
    the store and increase with the run counter.

    Raises:
        ValueError: If run_number is negative or not an integer.
    """
    if isinstance(run_number, bool) or not isinstance(run_number, int):
        raise ValueError(f"run number must be an integer, got {run_number!r}")
    if run_number < 0:
        raise ValueError(f"run number must be non-negative, got {run_number}")
    return f"0.0.{run_number}"


@dataclass(frozen=True)
class ArtifactRef:
    """A resolved artifact in the store.

    Attributes:
        group_id: Maven group coordinate (dotted)
        artifact_id: Maven artifact coordinate
        version: Version string, e.g. 0.0.42
        extension: File extension, e.g. war
        download_url: Direct download URL reported by the store
    """

    group_id: str
    artifact_id: str
    version: str
    extension: str
    download_url: str

    @property
    def filename(self) -> str:
        return f"{self.artifact_id}-{self.version}.{self.extension}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "group_id": self.group_id,
            "artifact_id": self.artifact_id,
            "version": self.version,
            "extension": self.extension,
            "download_url": self.download_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ArtifactRef":
        """Deserialize from dictionary."""
        return cls(
            group_id=data["group_id"],
            artifact_id=data["artifact_id"],
            version=data["version"],
            extension=data["extension"],
            download_url=data["download_url"],
        )
