#!/usr/bin/env python3
"""
Attention - Command Line Interface
Rank everything that needs attention now from a source snapshot
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from attention.core import Config, PriorityConfig
from attention.priority import JsonSnapshotSource, PriorityEngine, PriorityResult
from attention.priority.formatter import PriorityFormatter

# Initialize CLI app and console
app = typer.Typer(help="Attention - unified priority list across tasks, inbox, calendar and companies")

console = Console()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(
    config_dir: Optional[Path],
    max_items: Optional[int] = None,
    min_score: Optional[float] = None,
    strict: bool = False,
) -> PriorityConfig:
    """Effective config: settings file, environment, then command-line overrides"""
    config = Config(config_dir).priority_config()
    return config.with_overrides(
        max_items=max_items,
        min_score=min_score,
        strict_max_items=True if strict else None,
    )


def _rank_snapshot(snapshot: Path, config: PriorityConfig, timeout: float) -> PriorityResult:
    source = JsonSnapshotSource(snapshot)
    engine = PriorityEngine(source.sources(), config=config, fetch_timeout=timeout)
    return engine.run()


@app.command()
def rank(
    snapshot: Path = typer.Option(..., "--snapshot", "-s", help="JSON snapshot of source rows"),
    config_dir: Optional[Path] = typer.Option(None, "--config-dir", help="Directory holding priority.json"),
    max_items: Optional[int] = typer.Option(None, "--max-items", "-n", help="Override the global cap"),
    min_score: Optional[float] = typer.Option(None, "--min-score", help="Override the score threshold"),
    strict: bool = typer.Option(False, "--strict", help="Truncate mandatory items to the global cap too"),
    timeout: float = typer.Option(5.0, "--timeout", help="Seconds to wait for all sources"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show signals and debug statistics"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
):
    """
    Show the ranked list of what needs attention now

    Examples:
      planner rank --snapshot today.json
      planner rank -s today.json -n 5 --verbose
    """
    _setup_logging(log_level)
    try:
        config = _load_config(config_dir, max_items, min_score, strict)
        result = _rank_snapshot(snapshot, config, timeout)
    except (OSError, ValueError) as e:
        # Includes PriorityConfigError and JSONDecodeError
        console.print(f"[red]Error ranking snapshot: {e}[/red]")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    PriorityFormatter(console).render(result, config=config, verbose=verbose)


@app.command()
def explain(
    item_id: str = typer.Argument(..., help="Item ID, e.g. task-42"),
    snapshot: Path = typer.Option(..., "--snapshot", "-s", help="JSON snapshot of source rows"),
    config_dir: Optional[Path] = typer.Option(None, "--config-dir", help="Directory holding priority.json"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
):
    """
    Show why a ranked item scored the way it did
    """
    _setup_logging(log_level)
    try:
        config = _load_config(config_dir)
        result = _rank_snapshot(snapshot, config, timeout=5.0)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error ranking snapshot: {e}[/red]")
        raise typer.Exit(1)

    for item in result.items:
        if item.id == item_id:
            console.print(PriorityFormatter(console).format_signals(item))
            return

    console.print(f"[yellow]{item_id} is not in the ranked list[/yellow]")
    raise typer.Exit(1)


@app.command("config")
def show_config(
    config_dir: Optional[Path] = typer.Option(None, "--config-dir", help="Directory holding priority.json"),
):
    """
    Print the effective priority configuration
    """
    try:
        config = _load_config(config_dir)
    except (OSError, ValueError) as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)

    typer.echo(json.dumps(config.to_dict(), indent=2))


if __name__ == "__main__":
    app()
