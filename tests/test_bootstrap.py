from __future__ import annotations

import importlib.machinery
import io
import os
import shutil
import subprocess
import sys
import types

import pytest
from rich.console import Console

from conftest import console_text
from shellprofile.config import parse_profile_config
from shellprofile.driver import OVERALL_SECTION, run_bootstrap
from shellprofile.driver import stages
from shellprofile.loader.chain import Outcome, try_activate
from shellprofile.theme import load_theme
from shellprofile.utils.timers import TimerRegistry


def _fake_readline(monkeypatch, name="fake_readline"):
    module = types.ModuleType(name)
    module.__spec__ = importlib.machinery.ModuleSpec(name, None)
    module.calls = []
    module.read_history_file = lambda path: module.calls.append(("read", path))
    module.set_history_length = lambda n: module.calls.append(("length", n))
    module.write_history_file = lambda path: module.calls.append(("write", path))
    monkeypatch.setitem(sys.modules, name, module)
    return module


@pytest.fixture
def no_executables(monkeypatch):
    monkeypatch.setattr(shutil, "which", lambda name: None)


@pytest.fixture
def profile(tmp_path, monkeypatch):
    scripts_dir = tmp_path / "scripts"
    scripts_dir.mkdir()
    (scripts_dir / "10-aliases.py").write_text("VALUE = 1\n", encoding="utf-8")
    (scripts_dir / "20-broken.py").write_text("raise RuntimeError('oops')\n", encoding="utf-8")
    (scripts_dir / "notes.txt").write_text("not a script\n", encoding="utf-8")

    history = tmp_path / "history"
    history.write_text("ls\n", encoding="utf-8")

    monkeypatch.setenv("SHELLPROFILE_EDITOR", "placeholder")
    monkeypatch.setenv("PATH", os.pathsep.join(["/usr/bin", "/bin"]))
    monkeypatch.setenv("HOME", str(tmp_path))

    registered = []
    monkeypatch.setattr(stages.atexit, "register", lambda fn, *args: registered.append((fn, args)))
    monkeypatch.setattr(stages, "_HISTORY_SAVERS", set())

    raw = {
        "environment": {
            "variables": {"SHELLPROFILE_EDITOR": "nvim", "SHELLPROFILE_HOME": "~/work"},
            "path_prepend": ["~/bin", "/usr/bin"],
        },
        "scripts": {"directory": str(scripts_dir)},
        "modules": [
            {
                "name": "tools",
                "candidates": ["json", "shellprofile_missing_module", {"name": "fzf", "kind": "executable"}],
            },
            {
                "name": "predictor",
                "stop_on_first_success": True,
                "candidates": ["shellprofile_missing_module", "json", "csv"],
            },
        ],
        "line_editor": {"candidates": ["shellprofile_missing_editor", "fake_readline"], "history_file": str(history)},
        "prompt": {"theme_path": str(tmp_path / "theme.omp.json"), "engines": ["fake-posh"]},
    }
    monkeypatch.setenv("SHELLPROFILE_HOME", "placeholder")
    return parse_profile_config(raw), tmp_path, registered


def test_full_bootstrap(profile, monkeypatch, clock, console, no_executables) -> None:
    cfg, tmp_path, registered = profile
    readline = _fake_readline(monkeypatch)
    timers = TimerRegistry(console=console, clock=clock, verbose=True)

    report = run_bootstrap(cfg, timers=timers)

    # environment
    assert os.environ["SHELLPROFILE_EDITOR"] == "nvim"
    assert os.environ["SHELLPROFILE_HOME"] == str(tmp_path / "work")
    assert report.path_added == [str(tmp_path / "bin")]
    assert os.environ["PATH"].split(os.pathsep) == [str(tmp_path / "bin"), "/usr/bin", "/bin"]

    # custom scripts: the broken one is absorbed, the rest still run
    scripts = report.groups["scripts"]
    assert scripts.attempted == ["10-aliases.py", "20-broken.py"]
    assert scripts.activated == ["10-aliases.py"]
    assert scripts.result_for("20-broken.py").detail == "RuntimeError: oops"

    # module groups
    tools = report.groups["tools"]
    assert [r.outcome for r in tools.results] == [Outcome.ACTIVATED, Outcome.NOT_AVAILABLE, Outcome.NOT_AVAILABLE]
    predictor = report.groups["predictor"]
    assert predictor.activated == ["json"]
    assert predictor.skipped == ["csv"]

    # line editor
    editor = report.groups["line-editor"]
    assert editor.first_activated.name == "fake_readline"
    assert readline.calls == [("read", str(tmp_path / "history")), ("length", stages.HISTORY_LENGTH)]
    assert len(registered) == 1

    # prompt
    assert report.theme_created is True
    assert load_theme(report.theme_path)["version"] == 2
    assert report.groups["prompt"].results[0].outcome is Outcome.NOT_AVAILABLE
    assert report.prompt_init is None

    # timing
    assert timers.names() == [
        OVERALL_SECTION,
        "Environment",
        "Custom scripts",
        "Modules",
        "Line editor",
        "Prompt",
    ]
    assert all(timers.get(name).stopped for name in timers.names())
    text = console_text(console)
    assert text.splitlines()[-1].startswith(OVERALL_SECTION)
    assert "tools: json" in text
    assert "Theme file" in text


def test_prompt_engine_init_script(tmp_path, monkeypatch, console) -> None:
    monkeypatch.setattr(shutil, "which", lambda name: f"/usr/local/bin/{name}" if name == "starship" else None)
    seen = []

    def fake_run(cmd, **kwargs):
        seen.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout="eval \"$(starship init)\"\n", stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)
    cfg = parse_profile_config(
        {
            "scripts": {"directory": str(tmp_path / "missing")},
            "line_editor": {"candidates": []},
            "prompt": {"theme_path": str(tmp_path / "t.json"), "shell": "zsh", "engines": ["oh-my-posh", "starship"]},
        }
    )

    report = run_bootstrap(cfg, console=console)

    assert "scripts" not in report.groups
    assert seen == [["starship", "init", "zsh", "--print-full-init"]]
    assert report.prompt_init == "eval \"$(starship init)\"\n"
    assert report.groups["prompt"].attempted == ["oh-my-posh", "starship"]


def test_oh_my_posh_uses_theme_file(tmp_path) -> None:
    candidate = stages.prompt_candidate("oh-my-posh", "pwsh", tmp_path / "theme.json")
    assert candidate.name == "oh-my-posh"

    args = stages.PROMPT_INIT_ARGS["oh-my-posh"]("pwsh", tmp_path / "theme.json")
    assert args == ["init", "pwsh", "--config", str(tmp_path / "theme.json")]


def test_existing_theme_is_kept(tmp_path, console, no_executables) -> None:
    theme = tmp_path / "theme.json"
    theme.write_text('{"custom": 1}', encoding="utf-8")
    cfg = parse_profile_config(
        {
            "scripts": {"directory": str(tmp_path)},
            "line_editor": {"candidates": []},
            "prompt": {"theme_path": str(theme)},
        }
    )

    report = run_bootstrap(cfg, console=console)

    assert report.theme_created is False
    assert load_theme(theme) == {"custom": 1}


def test_theme_write_failure_is_absorbed(tmp_path, monkeypatch, console, no_executables, caplog) -> None:
    def fail(path, theme=None):
        raise PermissionError("read-only home")

    monkeypatch.setattr(stages, "ensure_theme", fail)
    cfg = parse_profile_config(
        {
            "scripts": {"directory": str(tmp_path / "none")},
            "line_editor": {"candidates": []},
            "prompt": {"theme_path": str(tmp_path / "theme.json")},
        }
    )

    report = run_bootstrap(cfg, console=console)

    assert report.theme_created is False
    assert "read-only home" in caplog.text


def test_failing_stage_propagates_and_stops_sections(clock, console) -> None:
    timers = TimerRegistry(console=console, clock=clock)

    def broken(ctx, section):
        clock.advance(5)
        raise RuntimeError("stage exploded")

    with pytest.raises(RuntimeError, match="stage exploded"):
        run_bootstrap(parse_profile_config({}), timers=timers, stages=[("Broken", broken)])

    assert timers.get("Broken").duration_ms == pytest.approx(5.0)
    assert timers.get(OVERALL_SECTION).stopped


def test_custom_stage_list(clock, console) -> None:
    timers = TimerRegistry(console=console, clock=clock)
    ran = []

    report = run_bootstrap(
        parse_profile_config({}),
        timers=timers,
        stages=[("One", lambda ctx, section: ran.append(section)), ("Two", lambda ctx, section: ran.append(section))],
    )

    assert ran == ["One", "Two"]
    assert report.groups == {}
    assert timers.names() == [OVERALL_SECTION, "One", "Two"]


def test_unreadable_history_keeps_back_end(tmp_path, monkeypatch, caplog) -> None:
    readline = _fake_readline(monkeypatch)

    def unreadable(path):
        raise PermissionError(13, "Permission denied", path)

    readline.read_history_file = unreadable
    monkeypatch.setattr(stages, "_HISTORY_SAVERS", set())
    monkeypatch.setattr(stages.atexit, "register", lambda *args: None)
    history = tmp_path / "history"
    history.write_text("ls\n", encoding="utf-8")

    result = try_activate(stages.line_editor_candidate("fake_readline", history))

    assert result.outcome is Outcome.ACTIVATED
    assert readline.calls == [("length", stages.HISTORY_LENGTH)]
    assert "Could not read history file" in caplog.text


def test_history_hook_registered_once_per_process(profile, monkeypatch, no_executables) -> None:
    cfg, _, registered = profile
    _fake_readline(monkeypatch)

    for _ in range(3):
        timers = TimerRegistry(console=Console(file=io.StringIO()))
        run_bootstrap(cfg, timers=timers)

    assert len(registered) == 1


def test_timers_and_console_together_are_rejected(console) -> None:
    with pytest.raises(ValueError, match="not both"):
        run_bootstrap(parse_profile_config({}), timers=TimerRegistry(console=console), console=console)
