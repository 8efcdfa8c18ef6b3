"""Driver utilities for running the profile bootstrap."""

from .bootstrap import OVERALL_SECTION, run_bootstrap
from .stages import BootstrapContext, BootstrapReport

__all__ = ["OVERALL_SECTION", "run_bootstrap", "BootstrapContext", "BootstrapReport"]
