"""commitgate - server-side commit policy checks for git pushes."""

from commitgate.config import PolicyConfig, PolicyConfigError, load_policy_config
from commitgate.hook import PushGate, evaluate_push, on_receive
from commitgate.types import (
    ZERO_ID,
    Commit,
    Identity,
    PolicyViolation,
    PushDecision,
    RefChange,
    RefChangeType,
    ViolationType,
)

__version__ = "0.1.0"

__all__ = [
    "ZERO_ID",
    "Commit",
    "Identity",
    "PolicyConfig",
    "PolicyConfigError",
    "PolicyViolation",
    "PushDecision",
    "PushGate",
    "RefChange",
    "RefChangeType",
    "ViolationType",
    "evaluate_push",
    "load_policy_config",
    "on_receive",
]
