from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Tuple

from rich.console import Console

from ..config import ProfileConfig, default_profile_config
from ..utils.timers import TimerRegistry
from .stages import (
    BootstrapContext,
    BootstrapReport,
    configure_line_editor,
    import_modules,
    integrate_prompt,
    load_custom_scripts,
    setup_environment,
)

logger = logging.getLogger(__name__)

OVERALL_SECTION = "Overall"

Stage = Tuple[str, Callable[[BootstrapContext, str], None]]

DEFAULT_STAGES: Tuple[Stage, ...] = (
    ("Environment", setup_environment),
    ("Custom scripts", load_custom_scripts),
    ("Modules", import_modules),
    ("Line editor", configure_line_editor),
    ("Prompt", integrate_prompt),
)


def run_bootstrap(
    config: Optional[ProfileConfig] = None,
    timers: Optional[TimerRegistry] = None,
    console: Optional[Console] = None,
    stages: Sequence[Stage] = DEFAULT_STAGES,
) -> BootstrapReport:
    """Run every startup stage in order, each inside its own timer section.

    The whole run is wrapped in the ``"Overall"`` section. Errors raised by a
    stage propagate once the open sections have been stopped; optional
    capabilities and the theme file never raise from here.

    ``console`` only applies to the registry built here; pass one or the
    other, not both.
    """

    if timers is not None and console is not None:
        raise ValueError("pass either timers or console, not both; the registry owns its console")
    cfg = config if config is not None else default_profile_config()
    if timers is None:
        timers = TimerRegistry(verbose=cfg.verbose, console=console, thresholds=cfg.thresholds)
    ctx = BootstrapContext(config=cfg, timers=timers)

    with timers.section(OVERALL_SECTION):
        for name, stage in stages:
            logger.debug("Starting stage %s", name)
            with timers.section(name):
                stage(ctx, name)
    return ctx.report


__all__ = ["OVERALL_SECTION", "DEFAULT_STAGES", "Stage", "run_bootstrap"]
