from __future__ import annotations

import io

import pytest
from rich.console import Console


class FakeClock:
    """Manually advanced clock returning seconds, like ``time.perf_counter``."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), color_system=None, width=120)


def console_text(console: Console) -> str:
    return console.file.getvalue()
