"""
CLI interface for AI Project Planner.

Provides command-line access to quota status and project generation.
"""

import json
import logging
import sqlite3
import sys
from dataclasses import replace
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from ai_project_planner.config.loader import PlannerConfig, StorageConfig, load_planner_config
from ai_project_planner.core.errors import UserFacingError, format_reset_time
from ai_project_planner.core.inputs import GenerationInput
from ai_project_planner.core.pipeline import build_generator
from ai_project_planner.core.usage import UsageLedger, UsageStatus, UsageWindow
from ai_project_planner.storage.repository import get_repository, initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


def _load_config(config_path: Optional[str], db_path: Optional[str]) -> PlannerConfig:
    config = load_planner_config(config_path) if config_path else PlannerConfig.default()
    if db_path:
        config = replace(config, storage=StorageConfig(db_path=db_path))
    return config


CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Path to YAML configuration file")
DB_OPTION = typer.Option(None, "--db", help="Override the quota database path")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """AI Project Planner CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    if ctx.invoked_subcommand is None:
        console.print("AI Project Planner - Use --help to see available commands")


@app.command()
def init(config_path: Optional[str] = CONFIG_OPTION, db_path: Optional[str] = DB_OPTION):
    """Initialize the quota database."""
    try:
        config = _load_config(config_path, db_path)
        initialize_schema(config.storage.db_path)
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except (OSError, ValueError, yaml.YAMLError, sqlite3.Error) as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def usage(
    user: str = typer.Option(..., "--user", "-u", help="User identifier"),
    config_path: Optional[str] = CONFIG_OPTION,
    db_path: Optional[str] = DB_OPTION
):
    """Show the user's remaining AI generations for the week."""
    try:
        config = _load_config(config_path, db_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    window = UsageWindow.from_config(config.quota)
    ledger = UsageLedger(get_repository(config.storage.db_path), window=window)
    _display_usage(ledger.check(user), window)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def generate(
    user: str = typer.Option(..., "--user", "-u", help="User identifier"),
    description: str = typer.Option(..., "--description", "-d", help="What the project is about"),
    tasks: int = typer.Option(5, "--tasks", "-t", help="Number of tasks to generate"),
    start: str = typer.Option(..., "--start", help="Project start date (YYYY-MM-DD)"),
    end: str = typer.Option(..., "--end", help="Project end date (YYYY-MM-DD)"),
    as_json: bool = typer.Option(False, "--json", help="Print the project as JSON"),
    config_path: Optional[str] = CONFIG_OPTION,
    db_path: Optional[str] = DB_OPTION
):
    """Generate a project plan with AI."""
    try:
        config = _load_config(config_path, db_path)
        initialize_schema(config.storage.db_path)
    except (OSError, ValueError, yaml.YAMLError, sqlite3.Error) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    generator = build_generator(config)
    result = generator.generate(user, GenerationInput(
        description=description,
        num_tasks=tasks,
        start_date=start,
        end_date=end
    ))

    if not result.ok:
        _display_error(result.error)
        sys.exit(EXIT_CODE_FAIL)

    if as_json:
        console.print_json(json.dumps(result.project.to_dict()))
    else:
        _display_project(result.project)
    if result.warning:
        console.print(f"\n[yellow]Warning:[/] {result.warning.message}")
    if result.usage:
        _display_usage(result.usage, UsageWindow.from_config(config.quota))
    sys.exit(EXIT_CODE_PASS)


def _display_error(error: UserFacingError):
    console.print(f"[red]Error:[/] {error.message}")


def _display_usage(status: UsageStatus, window: UsageWindow):
    """Display quota status the way the profile card shows it."""
    console.print(f"\n[bold]Weekly limit:[/bold] {status.remaining} of {window.limit} remaining")
    if status.has_reached_limit:
        console.print(f"Limit resets {format_reset_time(status.reset_time)}")
    else:
        console.print(f"Projects generated this week: {status.used(window.limit)}")
    if status.degraded:
        console.print("[dim]Usage could not be refreshed; showing last known values.[/]")


def _display_project(project):
    console.print(f"\n[bold]{project.title}[/bold] ({project.priority.value} priority)")
    console.print(project.description)
    console.print(f"{project.start_date} → {project.end_date}")

    table = Table(show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Task")
    table.add_column("Priority")
    table.add_column("Start")
    table.add_column("End")
    for task in sorted(project.tasks, key=lambda t: t.order_index):
        table.add_row(
            str(task.order_index),
            task.title,
            task.priority.value,
            task.start_date,
            task.end_date
        )
    console.print(table)


if __name__ == "__main__":
    app()
