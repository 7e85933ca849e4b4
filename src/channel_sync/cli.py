"""Command-line interface using Typer."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from channel_sync import __version__
from channel_sync.config import ConfigurationError, load_channel_configs, settings
from channel_sync.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="channel-sync",
    help="Channel Sync - YouTube channel sync, export and reconciliation",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Channel Sync v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log at DEBUG level."),
) -> None:
    """Channel Sync - Mirror channel uploads and statistics into a relational store."""
    if verbose:
        setup_logging("DEBUG")


def _get_gateway():
    from channel_sync.db import create_db_engine, create_session_factory
    from channel_sync.services.persistence import PersistenceGateway

    engine = create_db_engine()
    return PersistenceGateway(create_session_factory(engine))


@app.command("init-db")
def init_db_command() -> None:
    """Create the database tables if they do not exist."""
    from channel_sync.db import create_db_engine, init_db

    try:
        init_db(create_db_engine(), create_tables=True)
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    console.print("[bold green]✓ Database initialized[/bold green]")


@app.command()
def sync(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Channels config file (default: CHANNELS_CONFIG_PATH)"
    ),
    limit_videos: Optional[int] = typer.Option(
        None, "--limit-videos", "-n", min=1, help="Maximum videos fetched per channel"
    ),
) -> None:
    """Sync configured channels from the remote catalog into the store."""
    from channel_sync.jobs.channel_sync import get_catalog_adapter, run_channel_sync
    from channel_sync.utils import run_async

    try:
        channels = load_channel_configs(config or settings.channels_config_path)
        catalog = get_catalog_adapter()
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error: {e}[/bold red]")
        raise typer.Exit(code=1)

    console.print(
        f"[bold blue]Syncing {len(channels)} channels via {catalog.name}...[/bold blue]"
    )

    gateway = _get_gateway()
    try:
        summary = run_async(
            run_channel_sync(
                channels,
                catalog,
                gateway,
                limit_videos=limit_videos,
                content_type=settings.default_content_type,
            )
        )
    finally:
        run_async(catalog.close())

    table = Table(title="Channel Sync")
    table.add_column("Channel", style="cyan")
    table.add_column("Status")
    table.add_column("Remote ID", style="dim")
    table.add_column("Fetched", justify="right")
    table.add_column("Inserted", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Stats")
    table.add_column("Error", style="red")

    status_styles = {
        "synced": "green",
        "empty": "yellow",
        "not_found": "red",
        "failed": "red",
    }
    for outcome in summary.outcomes:
        style = status_styles.get(outcome.status.value, "white")
        updated = str(outcome.updated)
        if outcome.failed_updates:
            updated += f" ({outcome.failed_updates} failed)"
        table.add_row(
            outcome.slug,
            f"[{style}]{outcome.status.value}[/{style}]",
            outcome.remote_id or "-",
            str(outcome.fetched),
            str(outcome.inserted),
            updated,
            "✓" if outcome.statistics_stored else "-",
            (outcome.error or "")[:60],
        )

    console.print(table)

    if summary.has_failures:
        console.print(f"[bold red]✗ {len(summary.failed)} channel(s) failed[/bold red]")
        raise typer.Exit(code=1)

    console.print("[bold green]✓ Sync complete[/bold green]")


@app.command()
def export(
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Output directory (default: EXPORT_DIR)"
    ),
) -> None:
    """Export channels, videos and statistics to CSV plus a JSON summary."""
    from channel_sync.services.export import ExportWriter
    from channel_sync.services.persistence import PersistenceError

    writer = ExportWriter(
        _get_gateway(),
        output_dir or settings.export_dir,
        statistics_days=settings.statistics_export_days,
    )

    try:
        result = writer.export_all()
    except PersistenceError as e:
        console.print(f"[bold red]Export failed: {e}[/bold red]")
        raise typer.Exit(code=1)

    table = Table(title="Export")
    table.add_column("File", style="cyan")
    table.add_column("Records", justify="right")

    for filename, count in result.counts.items():
        table.add_row(str(result.output_dir / filename), str(count))

    console.print(table)

    if result.summary:
        by_visibility = ", ".join(
            f"{key}={value}" for key, value in result.summary.channels_by_visibility.items()
        )
        console.print(
            f"[dim]{result.summary.total_channels} channels ({by_visibility}), "
            f"{result.summary.total_videos} videos[/dim]"
        )

    console.print("[bold green]✓ Export complete[/bold green]")


@app.command()
def verify(
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Directory holding the export files (default: EXPORT_DIR)"
    ),
) -> None:
    """Reconcile the store against the export files and write a report."""
    from channel_sync.services.verification import ReconciliationChecker

    checker = ReconciliationChecker(_get_gateway(), output_dir or settings.export_dir)
    report = checker.run()
    report_path = checker.write_report(report)

    table = Table(title="Verification")
    table.add_column("Check", style="cyan")
    table.add_column("Result")
    table.add_column("Message")

    for result in report.results:
        mark = "[green]✓[/green]" if result.passed else "[red]✗[/red]"
        table.add_row(result.name, mark, result.message)

    console.print(table)

    for result in report.results:
        if not result.passed and result.details:
            console.print(f"[yellow]{result.name}:[/yellow] {result.details}")

    console.print(f"[dim]Report written to {report_path}[/dim]")

    if not report.all_passed:
        console.print(
            f"[bold red]✗ {report.total_tests - report.passed_tests} of "
            f"{report.total_tests} checks failed[/bold red]"
        )
        raise typer.Exit(code=1)

    console.print(f"[bold green]✓ All {report.total_tests} checks passed[/bold green]")


@app.command()
def stats(
    slug: str = typer.Argument(..., help="Channel slug"),
    days: int = typer.Option(30, "--days", "-d", min=1, help="Number of snapshots to show"),
) -> None:
    """Show the statistics history for a channel."""
    from channel_sync.services.persistence import PersistenceError

    try:
        snapshots = _get_gateway().fetch_statistics_history(slug, limit_days=days)
    except PersistenceError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    if not snapshots:
        console.print(f"[yellow]No statistics recorded for {slug}[/yellow]")
        return

    table = Table(title=f"Statistics: {slug}")
    table.add_column("Date", style="cyan")
    table.add_column("Subscribers", justify="right")
    table.add_column("Channel Views", justify="right")
    table.add_column("Videos", justify="right")
    table.add_column("Likes", justify="right")
    table.add_column("Comments", justify="right")

    for snapshot in snapshots:
        table.add_row(
            snapshot.date.isoformat(),
            f"{snapshot.subscriber_count:,}",
            f"{snapshot.total_channel_views:,}",
            f"{snapshot.total_videos:,}",
            f"{snapshot.calculated_total_likes:,}",
            f"{snapshot.calculated_total_comments:,}",
        )

    console.print(table)


if __name__ == "__main__":
    app()
