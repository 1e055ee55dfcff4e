"""ColorTouch CLI - server and offline sync management."""

from __future__ import annotations

import asyncio
import json
import logging

import typer
from rich.console import Console
from rich.table import Table

from .config import settings

app = typer.Typer(
    name="colortouch",
    help="ColorTouch CRM - server and offline sync tools",
    no_args_is_help=True,
)
console = Console()

sync_app = typer.Typer(help="Offline sync queue and runs")
app.add_typer(sync_app, name="sync")


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="Logging level (default from settings)"),
):
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("serve")
def serve(
    port: int = typer.Option(8030, "--port", "-p", help="Port to run on"),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Launch the ColorTouch API server."""
    import uvicorn

    console.print(f"[bold cyan]Starting ColorTouch CRM at http://{host}:{port}[/bold cyan]")
    uvicorn.run("colortouch.app:app", host=host, port=port, reload=reload)


@app.command("token")
def token(
    user_id: str = typer.Argument(..., help="User ID the session belongs to"),
    email: str = typer.Option(None, "--email", "-e", help="User email"),
):
    """Issue a session token for a desktop or scripted client."""
    from .auth import AuthUser, issue_session_token

    try:
        value = issue_session_token(settings, AuthUser(user_id=user_id, email=email))
    except RuntimeError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    typer.echo(value)


def _run(coro_fn):
    from .sync.coordinator import open_coordinator

    async def _inner():
        async with open_coordinator(settings) as coordinator:
            return await coro_fn(coordinator)

    return asyncio.run(_inner())


@sync_app.command("enqueue")
def sync_enqueue(
    operation: str = typer.Argument(..., help="CREATE, UPDATE or DELETE"),
    model: str = typer.Argument(..., help="Lead, Payment or Reminder"),
    record_id: str = typer.Argument(..., help="Record ID (temporary ID for CREATE)"),
    user_id: str = typer.Option(..., "--user", "-u", help="Owning user ID"),
    data: str = typer.Option("{}", "--data", "-d", help="Record fields as JSON"),
):
    """Queue a local change for the next sync."""
    from .errors import SyncError

    try:
        fields = json.loads(data)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid --data JSON: {e}[/red]")
        raise typer.Exit(1)

    async def _enqueue(coordinator):
        return await coordinator.queue.enqueue(operation, model, record_id, fields, user_id)

    try:
        result = _run(_enqueue)
    except SyncError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    if not result.ok:
        console.print(f"[red]Could not queue change: {result.error}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Queued change #{result.entry_id}[/green]")


@sync_app.command("run")
def sync_run(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Run one push-then-pull cycle against the remote server."""

    async def _sync(coordinator):
        return await coordinator.trigger()

    result = _run(_sync)

    if json_output:
        console.print_json(result.model_dump_json())
    else:
        table = Table(title="Sync Result")
        table.add_column("Synced", style="green")
        table.add_column("Failed", style="red")
        table.add_column("Conflicts", style="yellow")
        table.add_row(str(result.synced), str(result.failed), str(result.conflicts))
        console.print(table)
        style = "green" if result.success else "red"
        console.print(f"[{style}]{result.message}[/{style}]")

    if not result.success:
        raise typer.Exit(1)


@sync_app.command("status")
def sync_status(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Show queued changes per model and the pull checkpoint."""

    async def _status(coordinator):
        snapshot = await coordinator.status()
        checkpoint = await coordinator.queue.get_last_sync_time()
        return snapshot, checkpoint

    snapshot, checkpoint = _run(_status)

    if json_output:
        payload = snapshot.model_dump(mode="json")
        payload["lastSyncTime"] = checkpoint
        console.print_json(json.dumps(payload))
        return

    table = Table(title=f"Sync Queue ({snapshot.queue_count})")
    table.add_column("Model", style="cyan")
    table.add_column("Pending", style="yellow")
    table.add_row("Leads", str(snapshot.pending.leads))
    table.add_row("Payments", str(snapshot.pending.payments))
    table.add_row("Reminders", str(snapshot.pending.reminders))
    console.print(table)
    console.print(f"Last sync: {checkpoint or 'never'}")


@sync_app.command("conflicts")
def sync_conflicts():
    """List queued changes the server rejected as conflicts."""

    async def _conflicts(coordinator):
        return await coordinator.queue.list_conflicts()

    entries = _run(_conflicts)
    if not entries:
        console.print("[green]No conflicts[/green]")
        return

    table = Table(title=f"Conflicts ({len(entries)})")
    table.add_column("Entry", style="dim")
    table.add_column("Change", style="cyan")
    table.add_column("Record", style="white")
    table.add_column("Local updatedAt", style="yellow")
    table.add_column("Server updatedAt", style="red")
    for entry in entries:
        table.add_row(
            str(entry.id),
            f"{entry.operation} {entry.model}",
            entry.record_id,
            str((entry.data or {}).get("updatedAt", "-")),
            str((entry.server_data or {}).get("updatedAt", "-")),
        )
    console.print(table)


@sync_app.command("resolve")
def sync_resolve(
    entry_id: int = typer.Argument(..., help="Conflicting queue entry ID"),
    keep: str = typer.Option(..., "--keep", "-k", help="'server' drops the local change, 'local' retries it"),
):
    """Resolve a conflicting change."""
    from .sync.queue import ConflictStrategy

    if keep not in ("server", "local"):
        console.print("[red]--keep must be 'server' or 'local'[/red]")
        raise typer.Exit(1)
    strategy = ConflictStrategy(f"keep_{keep}")

    async def _resolve(coordinator):
        return await coordinator.queue.resolve_conflict(entry_id, strategy, mirror=coordinator.mirror)

    if not _run(_resolve):
        console.print(f"[red]No conflict with entry #{entry_id}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Resolved #{entry_id} keeping {keep} copy[/green]")


if __name__ == "__main__":
    app()
