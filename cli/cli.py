"""CLI for the study planner.

Developer CLI that runs the same import, recurrence and bulk-create code
paths as the HTTP API against the configured database.
"""

import os
from datetime import datetime
from pathlib import Path

import typer
import uvicorn
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from studyplan.config.settings import settings
from studyplan.core.logger import setup_logger
from studyplan.db.session import init_db
from studyplan.sessions.bulk_service import create_bulk
from studyplan.sessions.errors import SessionPipelineError
from studyplan.sessions.recurrence import RecurrenceExpander
from studyplan.sessions.store import SqlSessionStore
from studyplan.sessions.types import (
    BulkCreateRequest,
    EndType,
    Frequency,
    ImportFormat,
    ImportResult,
    RecurrenceRule,
    SessionDraft,
)
from studyplan.upload.import_service import detect_format, import_sessions
from studyplan.upload.samples import render_sample

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="studyplan-cli",
    help="Study Planner CLI - session import, recurrence and bulk create",
    add_completion=False,
)

DEFAULT_HOST = os.getenv("SERVER_HOST", "127.0.0.1")

STATUS_STYLES = {
    "success": "green",
    "warning": "yellow",
    "error": "red",
}


def _setup_logging(debug: bool = False) -> None:
    setup_logger(level="DEBUG" if debug else settings.log_level, log_file=settings.log_file)


def _load_import(file_path: Path) -> ImportResult:
    """Read and run one file through the import pipeline, exiting on structural errors."""
    try:
        fmt = detect_format(file_path.name, None)
        return import_sessions(file_path.read_bytes(), fmt)
    except SessionPipelineError as e:
        console.print(f"[red]Error ({e.code}):[/red] {e.message}", style="bold red")
        raise typer.Exit(1) from e


def _render_import(result: ImportResult) -> None:
    table = Table(title="Import preview", show_lines=False)
    table.add_column("Row", justify="right")
    table.add_column("Status")
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Duration", justify="right")
    table.add_column("Scheduled for")
    table.add_column("Issues")

    for row in result.rows:
        style = STATUS_STYLES[row.status]
        issues = [*row.errors, *row.warnings]
        table.add_row(
            str(row.row_number),
            f"[{style}]{row.status}[/{style}]" + (" (dup)" if row.is_duplicate else ""),
            row.draft.title,
            row.draft.category or "",
            str(row.draft.duration_minutes),
            row.draft.scheduled_for or "",
            "; ".join(issues),
        )

    console.print(table)
    summary = result.summary
    console.print(
        Panel(
            f"Total: {summary.total_rows}  "
            f"[green]Success: {summary.successful_rows}[/green]  "
            f"[yellow]Warnings: {summary.warning_rows}[/yellow]  "
            f"[red]Errors: {summary.failed_rows}[/red]  "
            f"Duplicates: {summary.duplicate_rows}",
            title="Summary",
        )
    )


@app.command()
def server(
    host: str = typer.Option(DEFAULT_HOST, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
) -> None:
    """Start the FastAPI server."""
    console.print(f"[bold cyan]Starting Study Planner API on {host}:{port}[/bold cyan]")
    uvicorn.run("studyplan.main:app", host=host, port=port, reload=reload)


@app.command()
def preview(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="CSV, JSON or XML file"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Parse and validate an import file without saving anything."""
    _setup_logging(debug)
    result = _load_import(file)
    _render_import(result)


@app.command()
def sample(
    fmt: ImportFormat = typer.Argument(..., help="csv, json or xml"),
    output_file: Path | None = typer.Option(None, "--output", "-o", help="Write the sample to a file"),
) -> None:
    """Print or save an example import file."""
    sample_file = render_sample(fmt)
    if output_file is None:
        console.print(sample_file.content, markup=False, highlight=False)
        return
    output_file.write_text(sample_file.content, encoding="utf-8")
    console.print(f"[green]✓ Wrote {sample_file.filename} sample to {output_file}[/green]")


@app.command()
def expand(
    frequency: Frequency = typer.Option(..., "--frequency", "-f", help="daily, weekly or monthly"),
    start: str | None = typer.Option(None, "--start", help="Anchor timestamp (default: now)"),
    interval: int = typer.Option(1, "--interval", help="Step between occurrences"),
    days: str | None = typer.Option(None, "--days", help="Weekly days as 0-6 (Sunday=0), comma-separated"),
    day_of_month: int | None = typer.Option(None, "--day-of-month", help="Monthly day to pin to"),
    end_type: EndType = typer.Option(EndType.COUNT, "--end-type", help="count, date or never"),
    count: int | None = typer.Option(None, "--count", help="Occurrences to generate for end-type count"),
    until: datetime | None = typer.Option(None, "--until", help="Last date for end-type date"),
) -> None:
    """Print the occurrences a recurrence rule generates."""
    try:
        rule = RecurrenceRule(
            frequency=frequency,
            interval=interval,
            days_of_week=[int(day) for day in days.split(",") if day.strip()] if days else None,
            day_of_month=day_of_month,
            end_type=end_type,
            end_count=count,
            end_date=until,
        )
    except ValueError as e:
        console.print(f"[red]Invalid recurrence rule:[/red] {e}")
        raise typer.Exit(1) from e

    base = SessionDraft(title="occurrence", scheduled_for=start)
    occurrences = RecurrenceExpander().expand(base, rule)

    for index, occurrence in enumerate(occurrences, start=1):
        console.print(f"{index:>4}  {occurrence.scheduled_for}")
    console.print(f"\n[bold]{len(occurrences)} occurrences[/bold]")


@app.command()
def commit(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="CSV, JSON or XML file"),
    user_id: str = typer.Option(..., "--user-id", help="Owner of the created sessions"),
    include_warnings: bool = typer.Option(True, "--include-warnings/--skip-warnings", help="Also commit rows with warnings"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Import a file and create its valid sessions in the database."""
    _setup_logging(debug)
    result = _load_import(file)
    _render_import(result)

    accepted = {"success", "warning"} if include_warnings else {"success"}
    drafts = [row.draft for row in result.rows if row.status in accepted]
    if not drafts:
        console.print("[yellow]No rows to commit[/yellow]")
        raise typer.Exit(1)

    init_db()
    try:
        outcome = create_bulk(BulkCreateRequest(sessions=drafts), user_id, SqlSessionStore())
    except SessionPipelineError as e:
        console.print(f"[red]Error ({e.code}):[/red] {e.message}", style="bold red")
        raise typer.Exit(1) from e

    console.print(f"\n[bold green]Created: {outcome.total_created}[/bold green]  [red]Failed: {outcome.total_failed}[/red]")
    for failure in outcome.failed:
        console.print(f"  [red]✗[/red] {failure.draft.title or '(untitled)'}: {failure.error}")

    if outcome.total_failed:
        logger.warning(f"Commit finished with {outcome.total_failed} failures", user_id=user_id)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
