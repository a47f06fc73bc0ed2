"""
Hearth CLI

Command-line interface for Hearth - shared context for personal assistant bots.

Usage:
    hearth serve                      Run the REST API
    hearth status                     Check storage and generation setup
    hearth context show <user>        Print a user's context
    hearth context update <user> <json>
    hearth context budget <user> <cost>
    hearth context list               List users with stored context
    hearth context reset <user>
    hearth db init                    Create the Postgres schema
"""

import asyncio
import json
import socket
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from hearth import __version__
from hearth.context.affordability import check_affordability
from hearth.context.service import ContextService
from hearth.context.storage import PostgresContextAdapter, create_storage
from hearth.context.store import ContextStore
from hearth.core.config import StorageBackend, configure_logging, get_settings
from hearth.core.errors import HearthError

# Create the main app
app = typer.Typer(
    name="hearth",
    help="Hearth - shared context for personal assistant bots",
    add_completion=False,
)

# Create sub-apps
context_app = typer.Typer(help="Inspect and edit user context documents")
db_app = typer.Typer(help="Database commands")
app.add_typer(context_app, name="context")
app.add_typer(db_app, name="db")

# Console for rich output
console = Console()


@asynccontextmanager
async def _service() -> AsyncIterator[ContextService]:
    settings = get_settings()
    store = ContextStore(create_storage(settings), default_city=settings.default_city)
    await store.connect()
    try:
        yield ContextService(store)
    finally:
        await store.disconnect()


def _run(coro) -> None:
    """Run a coroutine, turning Hearth errors into a red message and exit code 1."""
    try:
        asyncio.run(coro)
    except HearthError as e:
        console.print(f"[red]Error: {e.error}[/red] {e.details}")
        raise typer.Exit(1)


# =============================================================================
# Main Commands
# =============================================================================


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default from settings)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port (default from settings)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Hearth REST API."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(
        "hearth.servers.api:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@app.command()
def status() -> None:
    """Check Hearth system status.

    Shows the configured storage backend and whether text generation is set up.
    """
    console.print()
    console.print(Panel.fit("[bold blue]Hearth Status[/bold blue]", border_style="blue"))
    console.print()

    settings = get_settings()

    table = Table(title="Components")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    if settings.storage_backend == StorageBackend.POSTGRES:
        postgres_status = _check_postgres(settings.postgres_url)
        table.add_row(
            "Postgres",
            "[green]✓ Connected[/green]" if postgres_status else "[yellow]○ Not connected[/yellow]",
            settings.postgres_url.split("@")[-1] if "@" in settings.postgres_url else "localhost:5432",
        )
    else:
        table.add_row("Storage", "[green]✓ Ready[/green]", "In-memory (lost on restart)")

    table.add_row(
        "Gemini",
        "[green]✓ Configured[/green]" if settings.gemini_api_key else "[yellow]○ No API key[/yellow]",
        f"{settings.gemini_model} (fallback {settings.gemini_fallback_model})",
    )

    console.print(table)
    console.print()

    if not settings.gemini_api_key:
        console.print("[yellow]Tip: Set HEARTH_GEMINI_API_KEY to enable the bots[/yellow]")
        console.print()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", help="Show version"),
) -> None:
    """Hearth - shared context for personal assistant bots."""
    if version:
        console.print(f"Hearth version {__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print()
        console.print(
            Panel.fit(
                "[bold blue]Hearth[/bold blue]\n"
                "[dim]Shared context for personal assistant bots[/dim]\n\n"
                f"Version {__version__}",
                border_style="blue",
            )
        )
        console.print()
        console.print("Use [cyan]hearth --help[/cyan] for available commands.")
        console.print()


# =============================================================================
# Context Commands
# =============================================================================


@context_app.command("show")
def context_show(
    user_id: str = typer.Argument(..., help="User ID"),
) -> None:
    """Print a user's context document (the default if none is stored)."""

    async def do_show():
        async with _service() as service:
            context = await service.read(user_id)
        console.print_json(json.dumps(context))

    _run(do_show())


@context_app.command("update")
def context_update(
    user_id: str = typer.Argument(..., help="User ID"),
    update: str = typer.Argument(..., help='Partial update as JSON, e.g. \'{"finance": {"totalBalance": 5000}}\''),
) -> None:
    """Merge a partial update into a user's context."""
    try:
        parsed = json.loads(update)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON: {e}[/red]")
        raise typer.Exit(1)

    async def do_update():
        async with _service() as service:
            context = await service.apply_update(user_id, parsed)
        finance = context["finance"]
        budget_range = context["preferences"]["events"]["budgetRange"]
        console.print(
            f"[green]✓[/green] Updated {user_id}: "
            f"health={context['health']['currentCondition']} "
            f"balance={finance['totalBalance']} events budget max={budget_range['max']}"
        )

    _run(do_update())


@context_app.command("budget")
def context_budget(
    user_id: str = typer.Argument(..., help="User ID"),
    cost: float = typer.Argument(..., min=0, help="Event cost"),
) -> None:
    """Check whether a user can afford an event."""

    async def do_budget():
        settings = get_settings()
        async with _service() as service:
            context = await service.read(user_id)
        result = check_affordability(context, cost, settings.currency_symbol)

        table = Table(title=f"Affordability for {user_id}")
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        for key, value in result.items():
            table.add_row(key, str(value))
        console.print(table)

        style = "green" if result["canAfford"] else "red"
        console.print(f"[{style}]{result['recommendation']}[/{style}]: {result['suggestion']}")

    _run(do_budget())


@context_app.command("list")
def context_list(
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum users to list"),
) -> None:
    """List users with a stored context."""

    async def do_list():
        async with _service() as service:
            users = await service.store.storage.list_users(limit=limit)
        if not users:
            console.print("[dim]No stored contexts[/dim]")
            return
        for user_id in users:
            console.print(f"  {user_id}")

    _run(do_list())


@context_app.command("reset")
def context_reset(
    user_id: str = typer.Argument(..., help="User ID"),
) -> None:
    """Delete a user's stored context, so reads return the default again."""

    async def do_reset():
        async with _service() as service:
            deleted = await service.store.storage.delete(user_id)
        if deleted:
            console.print(f"[green]✓[/green] Reset context for {user_id}")
        else:
            console.print(f"[dim]No stored context for {user_id}[/dim]")

    _run(do_reset())


# =============================================================================
# Database Commands
# =============================================================================


@db_app.command("init")
def db_init(
    url: str | None = typer.Option(None, "--url", help="Postgres URL (default from settings)"),
) -> None:
    """Create the user_contexts table in Postgres."""

    async def do_init():
        adapter = PostgresContextAdapter(url or get_settings().postgres_url)
        await adapter.connect()
        try:
            await adapter.init_schema()
        finally:
            await adapter.disconnect()
        console.print("[green]✓[/green] Schema ready")

    _run(do_init())


# =============================================================================
# Helper Functions
# =============================================================================


def _check_postgres(url: str) -> bool:
    """Check if Postgres is reachable."""
    parsed = urlparse(url)
    host = parsed.hostname or "localhost"
    port = parsed.port or 5432
    try:
        with socket.create_connection((host, port), timeout=1):
            return True
    except OSError:
        return False


if __name__ == "__main__":
    app()
