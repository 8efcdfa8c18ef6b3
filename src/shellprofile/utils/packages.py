"""Availability checks and activation actions for optional capabilities."""

from __future__ import annotations

import importlib
import importlib.util
import runpy
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Dict

from ..loader.chain import ModuleCandidate


def _module_available(module_name: str) -> bool:
    """Return ``True`` if ``module_name`` can be imported."""

    try:
        return importlib.util.find_spec(module_name) is not None
    except (ImportError, ValueError):
        return False


def _executable_available(name: str) -> bool:
    return shutil.which(name) is not None


def _run_executable(name: str, args: Sequence[str]) -> str:
    # raises CalledProcessError on a non-zero exit, which the loader records as a failure
    result = subprocess.run(
        [name, *args],
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout


def python_module(name: str) -> ModuleCandidate:
    """Candidate that imports ``name`` when it can be found on ``sys.path``."""

    return ModuleCandidate(
        name=name,
        is_available=lambda: _module_available(name),
        activate=lambda: importlib.import_module(name),
    )


def executable(name: str, args: Sequence[str] = ("--version",)) -> ModuleCandidate:
    """Candidate that runs ``name`` with ``args`` when it is on ``PATH``.

    The activation value is the command's standard output.
    """

    arguments = list(args)
    return ModuleCandidate(
        name=name,
        is_available=lambda: _executable_available(name),
        activate=lambda: _run_executable(name, arguments),
    )


def script(path: str | Path, name: str | None = None) -> ModuleCandidate:
    """Candidate that executes the Python file at ``path`` in a fresh namespace."""

    script_path = Path(path).expanduser()
    return ModuleCandidate(
        name=name or script_path.name,
        is_available=script_path.is_file,
        activate=lambda: runpy.run_path(str(script_path), run_name="__profile__"),
    )


CANDIDATE_KINDS = ("python", "executable", "script")


def candidate_from_mapping(entry: Mapping[str, Any] | str) -> ModuleCandidate:
    """Build a candidate from a configuration entry.

    Parameters
    ----------
    entry:
        Either a bare module name or a mapping with ``name``, ``kind``
        (``python``, ``executable`` or ``script``) and, depending on the kind,
        ``args`` or ``path``.
    """

    if isinstance(entry, str):
        return python_module(entry)

    data: Dict[str, Any] = dict(entry)
    kind = str(data.get("kind", "python"))
    name = data.get("name")
    if kind == "script":
        path = data.get("path") or name
        if not path:
            raise ValueError("script candidates need a 'path'")
        return script(path, name=name)
    if not name:
        raise ValueError(f"{kind} candidates need a 'name'")
    if kind == "python":
        return python_module(str(name))
    if kind == "executable":
        args = data.get("args", ["--version"])
        if isinstance(args, str):
            args = args.split()
        return executable(str(name), [str(arg) for arg in args])
    raise ValueError(f"Unknown candidate kind {kind!r}; expected one of {CANDIDATE_KINDS}")


__all__ = [
    "python_module",
    "executable",
    "script",
    "candidate_from_mapping",
    "CANDIDATE_KINDS",
]
