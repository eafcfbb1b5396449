"""External build collaborators: checkout, quality gate and build tool.

Public API:
    - SourceCheckout: Resolves the commit being built
    - QualityGate: Runs static analysis against a quality-gate host
    - BuildRunner: Runs the build and finds its single artifact
    - BuildError, CheckoutError, QualityGateError
"""

from .build_runner import BuildRunner
from .checkout import SourceCheckout
from .exceptions import BuildError, CheckoutError, QualityGateError
from .process import CommandResult, run_command
from .quality_gate import QualityGate

__all__ = [
    "SourceCheckout",
    "QualityGate",
    "BuildRunner",
    "CommandResult",
    "run_command",
    "BuildError",
    "CheckoutError",
    "QualityGateError",
]
