"""Application-server deployment via the Tomcat text manager API.

Public API:
    - DeploymentController: undeploy/expire/reload/deploy against one target
    - DeploymentTarget: Server, context path and credentials
    - DeploymentReport: Outcome of a full redeploy
    - DeployError: Raised when a manager command fails
"""

from .controller import DeploymentController
from .exceptions import DeployError
from .models import DeploymentReport, DeploymentTarget, SubStepOutcome

__all__ = [
    "DeploymentController",
    "DeploymentTarget",
    "DeploymentReport",
    "SubStepOutcome",
    "DeployError",
]
