"""Pipeline configuration loaded from the environment."""

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_REPOSITORY = "maven-releases"
DEFAULT_PACKAGING = "war"
DEFAULT_BUILD_COMMAND = "mvn -B package"
DEFAULT_QUALITY_GATE_COMMAND = "mvn -B verify sonar:sonar"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigError(ValueError):
    """Raised when a required setting is missing or malformed.

    Messages name the offending variable, never its value.
    """

    def __init__(self, variable: str, problem: str = "is not set"):
        self.variable = variable
        super().__init__(f"Configuration error: {variable} {problem}")


@dataclass(frozen=True)
class Credentials:
    """Basic-auth credential pair. The password never appears in repr()."""

    username: str
    password: str = field(repr=False)

    def as_auth(self) -> tuple[str, str]:
        """Return the (username, password) tuple httpx expects."""
        return (self.username, self.password)

    def __str__(self) -> str:
        return f"{self.username}:***"


def normalize_app_path(path: str) -> str:
    """Normalize a context path to '/name' form (no trailing slash)."""
    return "/" + path.strip().strip("/")


@dataclass
class PipelineConfig:
    """Everything a pipeline run needs, passed explicitly to the driver.

    Attributes:
        store_url: Artifact store root, e.g. http://nexus:8081
        store_repository: Repository that receives and serves artifacts
        store_credentials: Basic-auth pair for the artifact store
        group_id: Maven group coordinate of the deployed artifact
        artifact_id: Maven artifact coordinate of the deployed artifact
        server_url: Application server root, e.g. http://tomcat:8080
        server_credentials: Basic-auth pair for the server manager API
        run_number: Monotonic run counter supplied by the trigger
        app_path: Context path the application is deployed under
        public_url: URL probed after deploy. Derived when not given.
        packaging: Artifact file extension
        sonar_host_url: Quality-gate host. Quality gate is skipped when unset.
        sonar_token: Quality-gate token, handed to the scanner via env
        quality_gate_fatal: Whether a failing quality gate halts the run
        commit_ref: Commit to record instead of asking git
        workspace: Checked-out source tree the build runs in
        scratch_dir: Directory the fetched artifact is downloaded into
    """

    store_url: str
    store_credentials: Credentials
    group_id: str
    artifact_id: str
    server_url: str
    server_credentials: Credentials
    run_number: int
    store_repository: str = DEFAULT_REPOSITORY
    app_path: Optional[str] = None
    public_url: Optional[str] = None
    packaging: str = DEFAULT_PACKAGING
    sonar_host_url: Optional[str] = None
    sonar_token: Optional[str] = field(default=None, repr=False)
    quality_gate_fatal: bool = False
    commit_ref: Optional[str] = None
    workspace: Path = Path(".")
    scratch_dir: Optional[Path] = None
    build_command: str = DEFAULT_BUILD_COMMAND
    quality_gate_command: str = DEFAULT_QUALITY_GATE_COMMAND
    artifact_glob: Optional[str] = None
    build_timeout: float = 1800.0
    http_timeout: float = 30.0
    grace_seconds: float = 30.0
    verify_timeout: float = 10.0
    expire_idle_minutes: int = 0

    def __post_init__(self) -> None:
        if self.run_number < 0:
            raise ConfigError("run_number", "must be a non-negative integer")
        self.store_url = self.store_url.rstrip("/")
        self.server_url = self.server_url.rstrip("/")
        self.workspace = Path(self.workspace)
        self.app_path = normalize_app_path(self.app_path or self.artifact_id)
        if self.public_url is None:
            self.public_url = f"{self.server_url}{self.app_path}/"
        if self.scratch_dir is None:
            self.scratch_dir = self.workspace / ".deploy-scratch"
        if self.artifact_glob is None:
            self.artifact_glob = f"target/*.{self.packaging}"

    @property
    def quality_gate_enabled(self) -> bool:
        return bool(self.sonar_host_url)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PipelineConfig":
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Raises:
            ConfigError: If a required variable is missing or malformed.
        """
        env = os.environ if environ is None else environ

        def required(name: str) -> str:
            value = env.get(name, "").strip()
            if not value:
                raise ConfigError(name)
            return value

        def optional(name: str) -> Optional[str]:
            value = env.get(name, "").strip()
            return value or None

        def number(name: str, default: float) -> float:
            raw = optional(name)
            if raw is None:
                return default
            try:
                value = float(raw)
            except ValueError:
                raise ConfigError(name, "must be a number") from None
            if not math.isfinite(value):
                raise ConfigError(name, "must be a finite number")
            return value

        def integer(name: str, default: int) -> int:
            raw = optional(name)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError:
                raise ConfigError(name, "must be an integer") from None

        run_raw = optional("PIPELINE_RUN_NUMBER") or optional("GITHUB_RUN_NUMBER")
        if run_raw is None:
            raise ConfigError("PIPELINE_RUN_NUMBER")
        try:
            run_number = int(run_raw)
        except ValueError:
            raise ConfigError("PIPELINE_RUN_NUMBER", "must be an integer") from None
        if run_number < 0:
            raise ConfigError("PIPELINE_RUN_NUMBER", "must be a non-negative integer")

        workspace = Path(optional("PIPELINE_WORKSPACE") or ".")
        scratch = optional("PIPELINE_SCRATCH_DIR")

        return cls(
            store_url=required("NEXUS_URL"),
            store_repository=optional("NEXUS_REPOSITORY") or DEFAULT_REPOSITORY,
            store_credentials=Credentials(
                required("NEXUS_USERNAME"), required("NEXUS_PASSWORD")
            ),
            group_id=required("ARTIFACT_GROUP_ID"),
            artifact_id=required("ARTIFACT_ID"),
            packaging=optional("ARTIFACT_PACKAGING") or DEFAULT_PACKAGING,
            server_url=required("TOMCAT_URL"),
            app_path=optional("TOMCAT_APP_PATH"),
            server_credentials=Credentials(
                required("TOMCAT_USERNAME"), required("TOMCAT_PASSWORD")
            ),
            public_url=optional("APP_PUBLIC_URL"),
            sonar_host_url=optional("SONAR_HOST_URL"),
            sonar_token=optional("SONAR_TOKEN"),
            quality_gate_fatal=(optional("QUALITY_GATE_FATAL") or "").lower()
            in _TRUE_VALUES,
            run_number=run_number,
            commit_ref=optional("GITHUB_SHA"),
            workspace=workspace,
            scratch_dir=Path(scratch) if scratch else None,
            build_command=optional("BUILD_COMMAND") or DEFAULT_BUILD_COMMAND,
            quality_gate_command=optional("QUALITY_GATE_COMMAND")
            or DEFAULT_QUALITY_GATE_COMMAND,
            artifact_glob=optional("BUILD_ARTIFACT_GLOB"),
            build_timeout=number("BUILD_TIMEOUT_SECONDS", 1800.0),
            http_timeout=number("HTTP_TIMEOUT_SECONDS", 30.0),
            grace_seconds=number("VERIFY_GRACE_SECONDS", 30.0),
            verify_timeout=number("VERIFY_TIMEOUT_SECONDS", 10.0),
            expire_idle_minutes=integer("TOMCAT_EXPIRE_IDLE_MINUTES", 0),
        )
