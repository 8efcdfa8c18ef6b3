"""Map measured durations onto display categories."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple


@dataclass(frozen=True)
class ThresholdTable:
    """Ascending ``(upper_bound_ms, category)`` pairs closed by an unbounded entry."""

    entries: Tuple[Tuple[float, str], ...]

    def __post_init__(self) -> None:
        if not self.entries:
            raise ValueError("threshold table must contain at least one entry")
        bounds = [bound for bound, _ in self.entries]
        for lower, upper in zip(bounds, bounds[1:]):
            if not upper > lower:
                raise ValueError(f"threshold bounds must be strictly ascending: {bounds}")
        if not math.isinf(bounds[-1]):
            raise ValueError("threshold table must end with an unbounded entry")

    @classmethod
    def from_pairs(cls, pairs: Iterable[Sequence[object]]) -> "ThresholdTable":
        """Build a table from ``[bound, category]`` pairs.

        A bound of ``None``, ``"inf"`` or ``float('inf')`` marks the final,
        unbounded bucket.
        """

        entries = []
        for pair in pairs:
            bound, category = pair
            if bound is None or (isinstance(bound, str) and bound.strip().lower() in {"inf", "infinity"}):
                value = math.inf
            else:
                value = float(bound)  # type: ignore[arg-type]
            entries.append((value, str(category)))
        return cls(tuple(entries))

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(category for _, category in self.entries)

    def category_for(self, ms: float) -> str:
        for bound, category in self.entries:
            if ms <= bound:
                return category
        # unreachable for a validated table; NaN falls through every comparison
        return self.entries[-1][1]


DEFAULT_THRESHOLDS = ThresholdTable(
    (
        (25.0, "fastest"),
        (50.0, "fast"),
        (100.0, "quick"),
        (200.0, "moderate"),
        (500.0, "slow"),
        (1000.0, "very slow"),
        (2000.0, "critical"),
        (math.inf, "extreme"),
    )
)

CATEGORY_STYLES = {
    "fastest": "bright_green",
    "fast": "green",
    "quick": "cyan",
    "moderate": "yellow",
    "slow": "dark_orange",
    "very slow": "red",
    "critical": "bold red",
    "extreme": "bold magenta",
}


def category_for(ms: float, table: ThresholdTable = DEFAULT_THRESHOLDS) -> str:
    """Return the category of the first bound ``>= ms`` in ``table``."""

    return table.category_for(ms)


def style_for(category: str) -> str:
    """Return the rich style used to print ``category``; unknown ones render plain."""

    return CATEGORY_STYLES.get(category, "default")


def format_ms(ms: float) -> str:
    return f"{ms:.0f}"


__all__ = [
    "ThresholdTable",
    "DEFAULT_THRESHOLDS",
    "CATEGORY_STYLES",
    "category_for",
    "style_for",
    "format_ms",
]
