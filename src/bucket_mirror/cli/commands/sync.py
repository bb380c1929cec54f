"""Command module for bucket-mirror sync operations."""

import asyncio
from typing import Dict, Iterable, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from bucket_mirror.cli.app import app
from bucket_mirror.cli.commands.command_utils import open_clients
from bucket_mirror.config import get_config
from bucket_mirror.sync import RunError, SyncService
from bucket_mirror.sync.utils import Delta, GuardResult, SyncReport

console = Console()


def add_files_to_tree(tree: Tree, paths: Iterable[str], style: str):
    """Add files to tree, grouped by directory."""
    by_dir: Dict[str, list] = {}
    for path in sorted(paths):
        parts = path.rsplit("/", 1)
        dir_name = parts[0] if len(parts) > 1 else ""
        by_dir.setdefault(dir_name, []).append(parts[-1])

    for dir_name, files in sorted(by_dir.items()):
        branch = tree.add(f"[bold]{dir_name}/[/bold]") if dir_name else tree
        for name in files:
            branch.add(f"[{style}]{name}[/{style}]")


def display_changes(
    title: str,
    delta: Delta,
    guard: Optional[GuardResult] = None,
    verbose: bool = False,
    out: Console = console,
):
    """Display pending changes using Rich."""
    tree = Tree(title)

    if delta.total_changes == 0:
        tree.add("No changes")
        out.print(Panel(tree, expand=False))
        return

    if not verbose:
        # compact display by top level directory
        by_dir: Dict[str, Dict[str, int]] = {}
        for change_type, paths in [
            ("added", delta.added),
            ("changed", delta.changed),
            ("deleted", delta.deleted),
        ]:
            for path in paths:
                dir_name = path.split("/", 1)[0] if "/" in path else ""
                counts = by_dir.setdefault(dir_name, {"added": 0, "changed": 0, "deleted": 0})
                counts[change_type] += 1

        for dir_name, counts in sorted(by_dir.items()):
            summary_parts = []
            if counts["added"]:
                summary_parts.append(f"[green]+{counts['added']} new[/green]")
            if counts["changed"]:
                summary_parts.append(f"[yellow]~{counts['changed']} modified[/yellow]")
            if counts["deleted"]:
                summary_parts.append(f"[red]-{counts['deleted']} deleted[/red]")
            tree.add(f"[bold]{dir_name}/[/bold] {' '.join(summary_parts)}")
    else:
        summary = []
        if delta.added:
            summary.append(f"[green]{len(delta.added)} new[/green]")
        if delta.changed:
            summary.append(f"[yellow]{len(delta.changed)} modified[/yellow]")
        if delta.deleted:
            summary.append(f"[red]{len(delta.deleted)} deleted[/red]")
        tree.add(f"Found {', '.join(summary)}")

        if delta.added:
            add_files_to_tree(tree.add("[green]New Files[/green]"), delta.added, "green")
        if delta.changed:
            add_files_to_tree(tree.add("[yellow]Modified[/yellow]"), delta.changed, "yellow")
        if delta.deleted:
            add_files_to_tree(tree.add("[red]Deleted[/red]"), delta.deleted, "red")

    if guard is not None and guard.anomaly:
        tree.add(f"[bold red]Deletions suppressed:[/bold red] {guard.anomaly}")

    out.print(Panel(tree, expand=False))


def display_report(report: SyncReport, out: Console = console):
    """Print a summary table and any failures for a finished run."""
    table = Table(title="Synchronization", show_header=True, header_style="bold cyan")
    table.add_column("Operation", style="dim")
    table.add_column("Attempted", justify="right")
    table.add_column("Succeeded", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_row(
        "transfers",
        str(report.transfers_attempted),
        str(report.transfers_succeeded),
        str(report.transfers_failed),
    )
    table.add_row(
        "deletions",
        str(report.deletions_attempted),
        str(report.deletions_succeeded),
        str(report.deletions_failed),
    )
    out.print(table)

    for failure in report.failures:
        out.print(f"[red]✗ {failure.operation} {failure.path}: {failure.cause}[/red]")
    if report.anomaly:
        out.print(f"[yellow]⚠ {report.anomaly}[/yellow]")
    if report.cancelled:
        out.print(f"[yellow]⚠ Run cancelled, {report.skipped} item(s) not started[/yellow]")


async def run_sync(timeout: Optional[float] = None) -> SyncReport:
    config = get_config()
    async with open_clients(config) as (source, target):
        return await SyncService(source, target, config).sync(timeout=timeout)


async def run_status(verbose: bool = False):
    config = get_config()
    async with open_clients(config) as (source, target):
        delta, guard = await SyncService(source, target, config).find_changes()
    display_changes(f"Dropbox -> s3://{config.bucket}", delta, guard, verbose)


@app.command()
def sync(
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Stop starting new work after this many seconds"
    ),
):
    """Mirror Dropbox onto the bucket."""
    try:
        report = asyncio.run(run_sync(timeout))
    except RunError as e:
        logger.error(f"Error during sync: {e}")
        typer.echo(f"Error during sync: {e}", err=True)
        raise typer.Exit(1)
    display_report(report)


@app.command()
def status(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed file information"),
):
    """Show the changes the next sync would make."""
    try:
        asyncio.run(run_status(verbose))
    except RunError as e:
        logger.error(f"Error checking status: {e}")
        typer.echo(f"Error checking status: {e}", err=True)
        raise typer.Exit(1)
