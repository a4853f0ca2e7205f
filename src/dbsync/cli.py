"""
Command line interface.

    dbsync sync [DATABASE] [--dry-run] [--force] [--threads N] [--method M]
    dbsync list
    dbsync status
    dbsync config
"""

import logging
from typing import Optional

import pydantic
import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from . import __version__
from .config import Settings, get_settings
from .engines import get_sync_engine
from .exceptions import DbSyncError
from .logging_config import setup_logging
from .models import DatabaseDescriptor, DumpMethod, SyncPhase, SyncPlan, SyncResult
from .services import DatabaseInspector, ProgressUpdate
from .utils.formatting import format_duration, format_size

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    help="Copy a MySQL database from a remote server to a local server.",
)
console = Console()

PHASE_LABELS = {
    SyncPhase.VALIDATING: "Validating",
    SyncPhase.DUMPING: "Creating dump",
    SyncPhase.RESTORING: "Restoring dump",
    SyncPhase.CLEANUP: "Cleaning up",
}


class ProgressRenderer:
    """Renders ProgressUpdate events as rich progress bars, one per phase."""

    def __init__(self, out: Console):
        self.progress = Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TimeElapsedColumn(),
            console=out,
        )
        self._tasks = {}

    def __enter__(self) -> "ProgressRenderer":
        self.progress.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.progress.stop()

    def __call__(self, update: ProgressUpdate) -> None:
        description = update.phase.capitalize()
        if update.estimated:
            description += " (estimated)"

        task_id = self._tasks.get(update.phase)
        if task_id is None:
            task_id = self.progress.add_task(description, total=update.total_bytes or None)
            self._tasks[update.phase] = task_id

        if update.done:
            total = max(update.total_bytes, update.current_bytes)
            self.progress.update(
                task_id, description=description, total=total, completed=total
            )
        else:
            self.progress.update(
                task_id, description=description, completed=update.current_bytes
            )


def _fail(exc: Exception) -> None:
    console.print(f"[red]Error:[/red] {exc}", highlight=False)
    cause = exc.__cause__
    while cause is not None and logger.isEnabledFor(logging.DEBUG):
        console.print(f"  caused by {type(cause).__name__}: {cause}", highlight=False)
        cause = cause.__cause__
    raise typer.Exit(code=1)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj


def _database_table(databases: list[DatabaseDescriptor], numbered: bool = False) -> Table:
    table = Table(title="Remote databases")
    if numbered:
        table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Tables", justify="right")
    table.add_column("Created")
    for index, db in enumerate(databases, start=1):
        row = [
            db.name,
            format_size(db.size_bytes),
            str(db.table_count),
            db.created_at.strftime("%Y-%m-%d %H:%M") if db.created_at else "-",
        ]
        if numbered:
            row.insert(0, str(index))
        table.add_row(*row)
    return table


def _prompt_database(settings: Settings) -> str:
    inspector = DatabaseInspector(settings)
    databases = inspector.list_databases(settings.remote_endpoint)
    if not databases:
        console.print("[yellow]No databases found on the remote server[/yellow]")
        raise typer.Exit(code=1)

    console.print(_database_table(databases, numbered=True))
    choice = typer.prompt("Select database (number or name)").strip()

    if choice.isdigit() and 1 <= int(choice) <= len(databases):
        return databases[int(choice) - 1].name
    for db in databases:
        if db.name == choice:
            return db.name

    console.print(f"[red]Unknown selection:[/red] {choice}", highlight=False)
    raise typer.Exit(code=1)


def _print_plan(plan: SyncPlan) -> None:
    console.print(f"Database:  [bold]{plan.database_name}[/bold]", highlight=False)
    console.print(f"Method:    {plan.method.value} ({plan.threads} threads)", highlight=False)
    console.print(
        f"Size:      {format_size(plan.size_bytes)}, {plan.table_count} tables", highlight=False
    )
    if plan.will_replace_existing:
        console.print("Action:    [yellow]replace existing local database[/yellow]")
    else:
        console.print("Action:    create local database")


def _print_result(result: SyncResult) -> None:
    console.print(
        f"[green]Synced '{result.database_name}'[/green] in {format_duration(result.duration_seconds)}",
        highlight=False,
    )
    console.print(
        f"  dump {format_duration(result.dump_duration_seconds)}, "
        f"restore {format_duration(result.restore_duration_seconds)}, "
        f"{format_size(result.dump_size_bytes)}, {result.table_count} tables",
        highlight=False,
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Copy a MySQL database from a remote server to a local server."""
    try:
        settings = get_settings()
    except pydantic.ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}", highlight=False)
        raise typer.Exit(code=1)

    setup_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = settings


@app.command()
def sync(
    ctx: typer.Context,
    database: Optional[str] = typer.Argument(None, help="Database to copy (prompted if omitted)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would happen without changes"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip the confirmation prompt"),
    threads: Optional[int] = typer.Option(None, "--threads", "-t", min=1, help="Parallel threads"),
    method: Optional[DumpMethod] = typer.Option(
        None, "--method", "-m", case_sensitive=False, help="Dump toolchain"
    ),
):
    """Copy DATABASE from the remote server, replacing the local copy."""
    settings = _settings(ctx)
    updates = {}
    if threads is not None:
        updates["threads"] = threads
    if method is not None:
        updates["method"] = method
    if updates:
        settings = settings.model_copy(update=updates)

    try:
        if database is None:
            database = _prompt_database(settings)

        engine = get_sync_engine(settings.method, settings)
        plan = engine.plan(database)
        _print_plan(plan)

        if dry_run:
            result, _ = engine.create_dump(database, dry_run=True)
            console.print(result.message, highlight=False)
            for cmd in engine.command_preview(database):
                console.print(f"  $ {' '.join(cmd)}", highlight=False, markup=False)
            return

        if settings.confirm_destructive and not force:
            if not typer.confirm(f"This will {plan.action} local database '{database}'. Continue?"):
                console.print("Cancelled")
                raise typer.Exit(code=0)

        def on_phase(phase: SyncPhase) -> None:
            label = PHASE_LABELS.get(phase)
            if label:
                logger.info(f"{label}...")

        with ProgressRenderer(console) as renderer:
            engine.reporter = renderer
            result = engine.execute_sync(database, on_phase=on_phase)
    except DbSyncError as e:
        _fail(e)

    _print_result(result)


@app.command("list")
def list_databases(ctx: typer.Context):
    """List databases on the remote server, largest first."""
    settings = _settings(ctx)
    try:
        databases = DatabaseInspector(settings).list_databases(settings.remote_endpoint)
    except DbSyncError as e:
        _fail(e)

    if not databases:
        console.print("No databases found on the remote server")
        return

    databases = sorted(databases, key=lambda db: db.size_bytes, reverse=True)
    console.print(_database_table(databases))


@app.command()
def status(ctx: typer.Context):
    """Check connectivity to the remote and local servers."""
    settings = _settings(ctx)
    inspector = DatabaseInspector(settings)

    table = Table(title="Connection status")
    table.add_column("Server")
    table.add_column("Address")
    table.add_column("User")
    table.add_column("Status")
    table.add_column("Details")

    for endpoint in (settings.remote_endpoint, settings.local_endpoint):
        probe = inspector.test_connection(endpoint)
        if probe.connected:
            state = "[green]connected[/green]"
            details = f"MySQL {probe.server_version}" if probe.server_version else ""
        else:
            state = "[red]unreachable[/red]"
            details = probe.error or ""
        table.add_row(endpoint.label, endpoint.address, endpoint.user, state, details)

    console.print(table)


@app.command("config")
def show_config(ctx: typer.Context):
    """Show the effective configuration (passwords masked)."""
    settings = _settings(ctx)
    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in settings.describe().items():
        table.add_row(key, "" if value is None else str(value))
    console.print(table)


@app.command()
def version():
    """Show the dbsync version."""
    console.print(f"dbsync {__version__}")


def main():
    app()
