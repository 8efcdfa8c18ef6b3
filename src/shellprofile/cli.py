"""Command-line interface to run the profile bootstrap."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from .config import default_profile_config, load_profile_config
from .driver import run_bootstrap
from .utils.logging import setup_logging
from .utils.timers import TimerRegistry

app = typer.Typer(add_completion=False)


@app.command()
def main(
    config: Optional[Path] = typer.Option(None, help="Path to the profile YAML config"),
    verbose: Optional[bool] = typer.Option(None, "--verbose/--quiet", help="Print per-step timings"),
    log_level: Optional[str] = typer.Option(None, help="Override the configured log level"),
    summary: bool = typer.Option(False, help="Print a table of all timings at the end"),
    print_init: bool = typer.Option(False, help="Print the prompt engine's init script"),
) -> None:
    cfg = load_profile_config(config) if config is not None else default_profile_config()
    if verbose is not None:
        cfg.verbose = verbose
    setup_logging(log_level or cfg.logging.level, rich_tracebacks=cfg.logging.rich_tracebacks)

    console = Console()
    timers = TimerRegistry(verbose=cfg.verbose, console=console, thresholds=cfg.thresholds)
    report = run_bootstrap(cfg, timers=timers)

    if summary:
        timers.render_summary(console)
    if print_init:
        if report.prompt_init is None:
            console.print("[yellow]No prompt engine was activated[/yellow]")
            raise typer.Exit(code=1)
        typer.echo(report.prompt_init, nl=False)


if __name__ == "__main__":
    app()
