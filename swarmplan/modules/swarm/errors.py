"""Error types for swarm planning and reconciliation."""
from typing import Any, Dict

# Exit codes used by the CLI
PLANNING_EXIT_CODE = 3
EXECUTION_EXIT_CODE = 4


class SwarmPlanError(Exception):
    """Base class for all swarmplan errors."""
    kind = "error"
    exit_code = 1

    def to_dict(self) -> Dict[str, Any]:
        """Structured form of the error for callers and CLI output."""
        return {
            "kind": self.kind,
            "error": type(self).__name__,
            "message": str(self),
            "exit_code": self.exit_code,
        }


class PlanningError(SwarmPlanError, ValueError):
    """The cluster spec cannot be planned. Fix the input, retrying won't help."""
    kind = "planning"
    exit_code = PLANNING_EXIT_CODE


class InvalidSpec(PlanningError):
    """Malformed or inconsistent ClusterSpec."""


class RangeExhausted(PlanningError):
    """A role needs more addresses than its subnet range provides."""


class InvalidCIDR(PlanningError):
    """A configured network, subnet or source range is not a valid CIDR."""


class ExecutionError(SwarmPlanError):
    """A reconciliation step failed after all retries."""
    kind = "execution"
    exit_code = EXECUTION_EXIT_CODE

    def __init__(self, message: str, step_key: str = None):
        super().__init__(message)
        self.step_key = step_key

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["step"] = self.step_key
        return data
