from enum import Enum


class CoordinatorPhase(str, Enum):
    """Sub-state of a coordinator that calls an external service."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
