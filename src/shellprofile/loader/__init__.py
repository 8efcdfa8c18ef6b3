"""Best-effort loader for optional capabilities."""

from .chain import (
    ActivationResult,
    GroupReport,
    ModuleCandidate,
    ModuleGroup,
    Outcome,
    run_group,
    try_activate,
)

__all__ = [
    "ActivationResult",
    "GroupReport",
    "ModuleCandidate",
    "ModuleGroup",
    "Outcome",
    "run_group",
    "try_activate",
]
