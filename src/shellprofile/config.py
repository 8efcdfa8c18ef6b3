"""Configuration utilities for the :mod:`shellprofile` bootstrap."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .reporting.durations import DEFAULT_THRESHOLDS, ThresholdTable

CONFIG_HOME = Path("~/.config/shellprofile")


@dataclass
class EnvironmentConfig:
    """Variables to export and directories to put in front of ``PATH``."""

    variables: Dict[str, str] = field(default_factory=dict)
    path_prepend: List[str] = field(default_factory=list)


@dataclass
class ScriptsConfig:
    """Directory of personal ``*.py`` scripts executed during startup."""

    directory: Path = CONFIG_HOME / "scripts"


@dataclass
class ModuleGroupConfig:
    """One declared group of optional capabilities."""

    name: str
    candidates: List[Any] = field(default_factory=list)
    stop_on_first_success: bool = False


@dataclass
class LineEditorConfig:
    """Line-editor back-ends in priority order and the history file to load."""

    candidates: List[str] = field(default_factory=lambda: ["readline", "pyreadline3"])
    history_file: Optional[Path] = CONFIG_HOME / "history"


@dataclass
class PromptConfig:
    """Prompt theme location and the prompt engines to try."""

    theme_path: Path = CONFIG_HOME / "theme.omp.json"
    shell: str = "bash"
    engines: List[str] = field(default_factory=lambda: ["oh-my-posh", "starship"])


@dataclass
class LoggingConfig:
    """Logging verbosity and formatting options."""

    level: str = "WARNING"
    rich_tracebacks: bool = True


@dataclass
class ProfileConfig:
    """Top-level configuration object composed of sub-configurations."""

    verbose: bool = False
    thresholds: ThresholdTable = DEFAULT_THRESHOLDS
    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)
    scripts: ScriptsConfig = field(default_factory=ScriptsConfig)
    modules: List[ModuleGroupConfig] = field(default_factory=list)
    line_editor: LineEditorConfig = field(default_factory=LineEditorConfig)
    prompt: PromptConfig = field(default_factory=PromptConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _coerce_path(value: Any) -> Path:
    if isinstance(value, Path):
        return value
    return Path(str(value))


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, Mapping):
        raise TypeError(f"'{key}' must be a mapping")
    return value


def load_yaml(path: Path) -> Mapping[str, Any]:
    """Load a YAML document and return a mapping."""

    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, Mapping):
        raise TypeError(f"{path} must contain a mapping")
    return data


def _module_groups(raw: Any) -> List[ModuleGroupConfig]:
    groups: List[ModuleGroupConfig] = []
    for entry in raw or []:
        if not isinstance(entry, Mapping):
            raise TypeError("each entry of 'modules' must be a mapping")
        groups.append(
            ModuleGroupConfig(
                name=str(entry.get("name", f"group-{len(groups) + 1}")),
                candidates=list(entry.get("candidates") or []),
                stop_on_first_success=bool(entry.get("stop_on_first_success", False)),
            )
        )
    return groups


def parse_profile_config(raw: Mapping[str, Any]) -> ProfileConfig:
    """Build a :class:`ProfileConfig` from an already-parsed mapping."""

    defaults = ProfileConfig()
    environment = _section(raw, "environment")
    scripts = _section(raw, "scripts")
    line_editor = _section(raw, "line_editor")
    prompt = _section(raw, "prompt")
    logging_cfg = _section(raw, "logging")

    thresholds = defaults.thresholds
    if raw.get("thresholds"):
        thresholds = ThresholdTable.from_pairs(raw["thresholds"])

    history_file = line_editor.get("history_file", defaults.line_editor.history_file)

    return ProfileConfig(
        verbose=bool(raw.get("verbose", defaults.verbose)),
        thresholds=thresholds,
        environment=EnvironmentConfig(
            variables={str(k): str(v) for k, v in dict(environment.get("variables") or {}).items()},
            path_prepend=[str(p) for p in environment.get("path_prepend") or []],
        ),
        scripts=ScriptsConfig(directory=_coerce_path(scripts.get("directory", defaults.scripts.directory))),
        modules=_module_groups(raw.get("modules")),
        line_editor=LineEditorConfig(
            candidates=[str(c) for c in line_editor.get("candidates", defaults.line_editor.candidates) or []],
            history_file=None if history_file is None else _coerce_path(history_file),
        ),
        prompt=PromptConfig(
            theme_path=_coerce_path(prompt.get("theme_path", defaults.prompt.theme_path)),
            shell=str(prompt.get("shell", defaults.prompt.shell)),
            engines=[str(e) for e in prompt.get("engines", defaults.prompt.engines) or []],
        ),
        logging=LoggingConfig(
            level=str(logging_cfg.get("level", defaults.logging.level)),
            rich_tracebacks=bool(logging_cfg.get("rich_tracebacks", defaults.logging.rich_tracebacks)),
        ),
    )


def load_profile_config(path: Path) -> ProfileConfig:
    """Load :class:`ProfileConfig` from ``path``."""

    return parse_profile_config(load_yaml(Path(path)))


def default_profile_config() -> ProfileConfig:
    return ProfileConfig()


__all__ = [
    "EnvironmentConfig",
    "ScriptsConfig",
    "ModuleGroupConfig",
    "LineEditorConfig",
    "PromptConfig",
    "LoggingConfig",
    "ProfileConfig",
    "load_yaml",
    "parse_profile_config",
    "load_profile_config",
    "default_profile_config",
]
