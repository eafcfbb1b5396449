"""Post-deploy verification.

Public API:
    - DeploymentVerifier: One probe after a fixed grace interval
    - VerificationError: Probe did not return HTTP 200
"""

from .exceptions import VerificationError
from .verifier import DeploymentVerifier

__all__ = ["DeploymentVerifier", "VerificationError"]
