"""The individual startup stages of a profile bootstrap.

Every stage receives the shared :class:`BootstrapContext` and the name of the
timer section it runs in, so it can record its own steps.
"""

from __future__ import annotations

import atexit
import contextlib
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from ..config import ProfileConfig
from ..loader.chain import GroupReport, ModuleCandidate, ModuleGroup, run_group
from ..theme import ensure_theme
from ..utils import packages
from ..utils.timers import TimerRegistry

logger = logging.getLogger(__name__)

HISTORY_LENGTH = 10000

# (back-end, history path) pairs that already have an exit hook
_HISTORY_SAVERS: Set[Tuple[str, str]] = set()

PROMPT_INIT_ARGS = {
    "oh-my-posh": lambda shell, theme: ["init", shell, "--config", str(theme)],
    "starship": lambda shell, theme: ["init", shell, "--print-full-init"],
}


@dataclass
class BootstrapReport:
    """What a bootstrap run activated and produced."""

    groups: Dict[str, GroupReport] = field(default_factory=dict)
    exported: Dict[str, str] = field(default_factory=dict)
    path_added: List[str] = field(default_factory=list)
    theme_path: Optional[Path] = None
    theme_created: bool = False
    prompt_init: Optional[str] = None


@dataclass
class BootstrapContext:
    config: ProfileConfig
    timers: TimerRegistry
    report: BootstrapReport = field(default_factory=BootstrapReport)

    def run_group(self, group: ModuleGroup, section: str) -> GroupReport:
        result = run_group(group, self.timers, section)
        self.report.groups[group.name] = result
        return result


def _expand(value: str) -> str:
    return os.path.expandvars(os.path.expanduser(value))


# --- environment -----------------------------------------------------------
def _export_variables(variables: Dict[str, str]) -> Dict[str, str]:
    exported = {}
    for key, value in variables.items():
        exported[key] = os.environ[key] = _expand(value)
    return exported


def _prepend_path(directories: List[str]) -> List[str]:
    parts = [p for p in os.environ.get("PATH", "").split(os.pathsep) if p]
    added = []
    for directory in reversed([_expand(d) for d in directories]):
        if directory in parts:
            continue
        parts.insert(0, directory)
        added.insert(0, directory)
    os.environ["PATH"] = os.pathsep.join(parts)
    return added


def setup_environment(ctx: BootstrapContext, section: str) -> None:
    env = ctx.config.environment
    if env.variables:
        ctx.report.exported = ctx.timers.record_step(
            section, "Variables", lambda: _export_variables(env.variables)
        )
    if env.path_prepend:
        ctx.report.path_added = ctx.timers.record_step(
            section, "PATH", lambda: _prepend_path(env.path_prepend)
        )


# --- custom scripts --------------------------------------------------------
def load_custom_scripts(ctx: BootstrapContext, section: str) -> None:
    directory = ctx.config.scripts.directory.expanduser()
    if not directory.is_dir():
        logger.debug("Custom script directory %s does not exist", directory)
        return
    candidates = [packages.script(path) for path in sorted(directory.glob("*.py"))]
    ctx.run_group(ModuleGroup("scripts", candidates, stop_on_first_success=False), section)


# --- modules ---------------------------------------------------------------
def import_modules(ctx: BootstrapContext, section: str) -> None:
    for group_cfg in ctx.config.modules:
        group = ModuleGroup(
            name=group_cfg.name,
            candidates=[packages.candidate_from_mapping(entry) for entry in group_cfg.candidates],
            stop_on_first_success=group_cfg.stop_on_first_success,
        )
        ctx.run_group(group, section)


# --- line editor -----------------------------------------------------------
def _save_history(module: Any, path: Path) -> None:
    with contextlib.suppress(OSError):
        path.parent.mkdir(parents=True, exist_ok=True)
        module.write_history_file(str(path))


def line_editor_candidate(name: str, history_file: Optional[Path]) -> ModuleCandidate:
    """Import a readline-compatible module and wire up its history file."""

    base = packages.python_module(name)

    def activate() -> Any:
        module = base.activate()
        if history_file is None or not hasattr(module, "read_history_file"):
            return module
        path = history_file.expanduser()
        if path.exists():
            # an unreadable history file must not demote a working back-end
            try:
                module.read_history_file(str(path))
            except OSError as exc:
                logger.warning("Could not read history file %s: %s", path, exc)
        if hasattr(module, "set_history_length"):
            module.set_history_length(HISTORY_LENGTH)
        key = (name, str(path))
        if hasattr(module, "write_history_file") and key not in _HISTORY_SAVERS:
            _HISTORY_SAVERS.add(key)
            atexit.register(_save_history, module, path)
        return module

    return ModuleCandidate(name=name, is_available=base.is_available, activate=activate)


def configure_line_editor(ctx: BootstrapContext, section: str) -> None:
    editor = ctx.config.line_editor
    candidates = [line_editor_candidate(name, editor.history_file) for name in editor.candidates]
    ctx.run_group(ModuleGroup("line-editor", candidates, stop_on_first_success=True), section)


# --- prompt ----------------------------------------------------------------
def _ensure_theme_file(path: Path) -> bool:
    try:
        created = ensure_theme(path)
    except OSError as exc:
        logger.warning("Could not write prompt theme %s: %s", path, exc)
        return False
    if created:
        logger.info("Wrote default prompt theme to %s", path)
    return created


def prompt_candidate(engine: str, shell: str, theme_path: Path) -> ModuleCandidate:
    make_args: Callable[[str, Path], List[str]] = PROMPT_INIT_ARGS.get(
        engine, lambda sh, _theme: ["init", sh]
    )
    return packages.executable(engine, make_args(shell, theme_path))


def integrate_prompt(ctx: BootstrapContext, section: str) -> None:
    prompt = ctx.config.prompt
    theme_path = prompt.theme_path.expanduser()
    ctx.report.theme_path = theme_path
    ctx.report.theme_created = ctx.timers.record_step(
        section, "Theme file", lambda: _ensure_theme_file(theme_path)
    )
    candidates = [prompt_candidate(engine, prompt.shell, theme_path) for engine in prompt.engines]
    result = ctx.run_group(ModuleGroup("prompt", candidates, stop_on_first_success=True), section)
    winner = result.first_activated
    ctx.report.prompt_init = winner.value if winner is not None else None


__all__ = [
    "BootstrapContext",
    "BootstrapReport",
    "setup_environment",
    "load_custom_scripts",
    "import_modules",
    "line_editor_candidate",
    "configure_line_editor",
    "prompt_candidate",
    "integrate_prompt",
]
