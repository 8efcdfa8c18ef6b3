"""shellprofile
============

Timed, best-effort bootstrap for an interactive shell profile: named timer
sections with step breakdowns, and a loader that activates optional
capabilities while tolerating their absence.
"""

from .loader import GroupReport, ModuleCandidate, ModuleGroup, Outcome, run_group, try_activate
from .utils.timers import TimerRegistry

__version__ = "0.1.0"

__all__ = [
    "GroupReport",
    "ModuleCandidate",
    "ModuleGroup",
    "Outcome",
    "TimerRegistry",
    "run_group",
    "try_activate",
]
