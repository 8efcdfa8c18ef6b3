"""Named section timers with step breakdown and colourised reporting."""

from __future__ import annotations

import contextlib
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, TypeVar

from rich.console import Console
from rich.table import Table

from ..reporting.durations import DEFAULT_THRESHOLDS, ThresholdTable, format_ms, style_for

logger = logging.getLogger(__name__)

T = TypeVar("T")

SECTION_WIDTH = 28
STEP_WIDTH = 36


@dataclass(frozen=True)
class Step:
    """One measured unit of work inside a section."""

    label: str
    elapsed_ms: float


@dataclass
class TimerSection:
    """Wall-clock interval for a named stage.

    Timestamps are in seconds as returned by the registry clock; durations are
    reported in milliseconds.
    """

    name: str
    start: float
    end: Optional[float] = None
    steps: List[Step] = field(default_factory=list)

    @property
    def stopped(self) -> bool:
        return self.end is not None

    @property
    def duration_ms(self) -> Optional[float]:
        if self.end is None:
            return None
        return (self.end - self.start) * 1000.0


class TimerRegistry:
    """Registry of section timers keyed by name.

    Starting a name that already exists replaces the previous section. Stopping
    or stepping an unknown name is ignored so instrumentation can never break
    the work being measured.
    """

    def __init__(
        self,
        verbose: bool = False,
        console: Optional[Console] = None,
        thresholds: ThresholdTable = DEFAULT_THRESHOLDS,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.verbose = verbose
        self.console = console if console is not None else Console()
        self.thresholds = thresholds
        self.clock = clock
        self.sections: Dict[str, TimerSection] = {}

    # --- section lifecycle -------------------------------------------------
    def start(self, name: str) -> TimerSection:
        section = TimerSection(name=name, start=self.clock())
        # re-insert so iteration order follows the latest start
        self.sections.pop(name, None)
        self.sections[name] = section
        return section

    def stop(self, name: str) -> Optional[TimerSection]:
        section = self.sections.get(name)
        if section is None:
            logger.debug("Ignoring stop for unknown timer section %r", name)
            return None
        if section.stopped:
            return section
        section.end = self.clock()
        self._emit_section(section)
        return section

    def record_step(self, section_name: str, label: str, action: Callable[[], T]) -> T:
        """Run ``action`` and attach its elapsed time to ``section_name``.

        Whatever ``action`` returns is returned; whatever it raises propagates
        after the elapsed time has been recorded.
        """

        started = self.clock()
        try:
            return action()
        finally:
            elapsed_ms = (self.clock() - started) * 1000.0
            section = self.sections.get(section_name)
            if section is None:
                logger.debug("Dropping step %r for unknown timer section %r", label, section_name)
            else:
                section.steps.append(Step(label=label, elapsed_ms=elapsed_ms))
                if self.verbose:
                    self._emit_step(label, elapsed_ms)

    @contextlib.contextmanager
    def section(self, name: str) -> Iterator[TimerSection]:
        section = self.start(name)
        try:
            yield section
        finally:
            self.stop(name)

    # --- lookup ------------------------------------------------------------
    def get(self, name: str) -> Optional[TimerSection]:
        return self.sections.get(name)

    def names(self) -> List[str]:
        return list(self.sections)

    def reset(self) -> None:
        self.sections.clear()

    def category_for(self, ms: float) -> str:
        return self.thresholds.category_for(ms)

    # --- presentation ------------------------------------------------------
    def _emit_section(self, section: TimerSection) -> None:
        ms = section.duration_ms or 0.0
        style = style_for(self.category_for(ms))
        self._print(f"{section.name:<{SECTION_WIDTH}}Done in {format_ms(ms)} ms", style)

    def _emit_step(self, label: str, ms: float) -> None:
        style = style_for(self.category_for(ms))
        self._print(f"    {label:<{STEP_WIDTH}}Step took {format_ms(ms)} ms", style)

    def _print(self, line: str, style: str) -> None:
        try:
            self.console.print(line, style=style, markup=False, highlight=False)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.debug("Timer output failed: %s", exc)

    def render_summary(self, console: Optional[Console] = None, title: str = "Startup timings") -> Table:
        """Print (and return) a table of every stopped section and its steps."""

        table = Table(title=title)
        table.add_column("section")
        table.add_column("step")
        table.add_column("ms", justify="right")
        table.add_column("category")
        for section in self.sections.values():
            if not section.stopped:
                continue
            ms = section.duration_ms or 0.0
            category = self.category_for(ms)
            table.add_row(section.name, "", format_ms(ms), category, style=style_for(category))
            for step in section.steps:
                step_category = self.category_for(step.elapsed_ms)
                table.add_row(
                    "", step.label, format_ms(step.elapsed_ms), step_category, style=style_for(step_category)
                )
        (console or self.console).print(table)
        return table


__all__ = ["Step", "TimerSection", "TimerRegistry"]
