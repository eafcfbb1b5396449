"""Data models for the deployment module."""

from dataclasses import dataclass, field
from typing import Optional

from deploy_pipeline.config import Credentials, normalize_app_path


@dataclass(frozen=True)
class DeploymentTarget:
    """An application bound to a context path on one server.

    Attributes:
        server_url: Server root URL, e.g. http://tomcat:8080
        app_path: Context path, normalized to '/name'
        credentials: Manager basic-auth pair (never logged)
        public_url: URL the deployed app answers on.
            Defaults to server_url + app_path + '/'.
    """

    server_url: str
    app_path: str
    credentials: Optional[Credentials] = field(default=None, repr=False)
    public_url: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "server_url", self.server_url.rstrip("/"))
        object.__setattr__(self, "app_path", normalize_app_path(self.app_path))
        if self.public_url is None:
            object.__setattr__(
                self, "public_url", f"{self.server_url}{self.app_path}/"
            )


@dataclass
class SubStepOutcome:
    """Outcome of one manager command inside a redeploy."""

    command: str
    success: bool
    message: str = ""


@dataclass
class DeploymentReport:
    """Aggregate outcome of undeploy -> expire -> reload -> deploy."""

    app_path: str
    outcomes: list[SubStepOutcome] = field(default_factory=list)

    @property
    def deployed(self) -> bool:
        return any(o.command == "deploy" and o.success for o in self.outcomes)
