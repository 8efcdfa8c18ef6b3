"""Best-effort activation of optional capabilities.

Each candidate carries its own availability predicate and activation action.
:func:`try_activate` turns every outcome, including exceptions raised by those
callables, into an :class:`ActivationResult`; :func:`run_group` walks a group
in declared order and aggregates the results into a :class:`GroupReport`.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from ..utils.timers import TimerRegistry

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    ACTIVATED = "activated"
    NOT_AVAILABLE = "not-available"
    FAILED = "failed"


@dataclass(frozen=True)
class ModuleCandidate:
    """An optional capability the loader may activate."""

    name: str
    is_available: Callable[[], bool]
    activate: Callable[[], Any]


@dataclass
class ModuleGroup:
    """Ordered candidates sharing one activation policy."""

    name: str
    candidates: List[ModuleCandidate] = field(default_factory=list)
    stop_on_first_success: bool = False


@dataclass(frozen=True)
class ActivationResult:
    name: str
    outcome: Outcome
    detail: Optional[str] = None
    elapsed_ms: float = 0.0
    value: Any = None

    @property
    def activated(self) -> bool:
        return self.outcome is Outcome.ACTIVATED


@dataclass
class GroupReport:
    """Per-candidate results for one :func:`run_group` call."""

    group: str
    stop_on_first_success: bool
    results: List[ActivationResult] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def attempted(self) -> List[str]:
        return [result.name for result in self.results]

    @property
    def activated(self) -> List[str]:
        return [result.name for result in self.results if result.activated]

    @property
    def failed(self) -> List[ActivationResult]:
        return [result for result in self.results if result.outcome is Outcome.FAILED]

    @property
    def first_activated(self) -> Optional[ActivationResult]:
        for result in self.results:
            if result.activated:
                return result
        return None

    def result_for(self, name: str) -> Optional[ActivationResult]:
        for result in self.results:
            if result.name == name:
                return result
        return None


def _describe(exc: BaseException) -> str:
    message = str(exc)
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


def try_activate(candidate: ModuleCandidate) -> ActivationResult:
    """Check and activate ``candidate`` without ever raising."""

    started = time.perf_counter()

    def _elapsed() -> float:
        return (time.perf_counter() - started) * 1000.0

    try:
        available = bool(candidate.is_available())
    except Exception as exc:  # pylint: disable=broad-exception-caught
        detail = _describe(exc)
        logger.warning("Availability check for %s failed: %s", candidate.name, detail)
        return ActivationResult(candidate.name, Outcome.FAILED, detail=detail, elapsed_ms=_elapsed())

    if not available:
        logger.debug("%s is not available, skipping", candidate.name)
        return ActivationResult(candidate.name, Outcome.NOT_AVAILABLE, elapsed_ms=_elapsed())

    # scripts may call sys.exit(); KeyboardInterrupt still propagates
    try:
        value = candidate.activate()
    except (Exception, SystemExit) as exc:  # pylint: disable=broad-exception-caught
        detail = _describe(exc)
        logger.warning("Failed to activate %s: %s", candidate.name, detail)
        return ActivationResult(candidate.name, Outcome.FAILED, detail=detail, elapsed_ms=_elapsed())

    logger.debug("Activated %s", candidate.name)
    return ActivationResult(candidate.name, Outcome.ACTIVATED, elapsed_ms=_elapsed(), value=value)


def run_group(
    group: ModuleGroup,
    timers: Optional[TimerRegistry] = None,
    section: Optional[str] = None,
) -> GroupReport:
    """Attempt the candidates of ``group`` in declared order.

    When ``timers`` and ``section`` are given, each attempt is recorded as a
    step named ``"<group>: <candidate>"`` in that section.
    """

    report = GroupReport(group=group.name, stop_on_first_success=group.stop_on_first_success)
    for index, candidate in enumerate(group.candidates):
        if timers is not None and section is not None:
            result = timers.record_step(
                section, f"{group.name}: {candidate.name}", lambda c=candidate: try_activate(c)
            )
        else:
            result = try_activate(candidate)
        report.results.append(result)
        if result.activated and group.stop_on_first_success:
            report.skipped = [c.name for c in group.candidates[index + 1 :]]
            break

    if not report.activated:
        logger.debug("No capability activated in group %s", group.name)
    return report


__all__ = [
    "Outcome",
    "ModuleCandidate",
    "ModuleGroup",
    "ActivationResult",
    "GroupReport",
    "try_activate",
    "run_group",
]
