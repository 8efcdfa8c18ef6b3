"""Utility helpers for the :mod:`shellprofile` package."""

from .logging import setup_logging
from .timers import Step, TimerRegistry, TimerSection

__all__ = ["setup_logging", "Step", "TimerRegistry", "TimerSection"]
