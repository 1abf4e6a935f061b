"""CLI entry point using typer."""

from __future__ import annotations

import asyncio
import logging
import secrets
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from histsync import __version__
from histsync.config import (
    CONFIG_FILE,
    LOG_FILE,
    AppConfig,
    AuthConfig,
    LoggingConfig,
    ServerConfig,
    StorageConfig,
    ensure_config_dir,
    load_config,
    save_config,
)
from histsync.services.search import DEFAULT_LIMIT, SearchFilter, search_history
from histsync.services.status import StatusAggregator
from histsync.storage import database
from histsync.storage.commands import CommandRepository
from histsync.storage.models import Command, Status
from histsync.storage.systems import SystemRepository
from histsync.storage.users import UserRepository
from histsync.utils.formatting import format_exit_status, format_timestamp, status_rows, truncate

app = typer.Typer(
    name="histsync-server",
    help="Synchronize shell command history across machines.",
    add_completion=False,
)
console = Console()


@app.command()
def init() -> None:
    """Interactive setup wizard."""
    console.print(f"\n[bold]histsync-server v{__version__}[/bold]")
    console.print("Interactive Setup\n")

    if CONFIG_FILE.exists() and not typer.confirm(f"  {CONFIG_FILE} exists. Overwrite?", default=False):
        raise typer.Exit(1)

    # 1. Listen address
    console.print("[bold]Step 1:[/bold] Listen Address")
    addr = typer.prompt("  Address", default=ServerConfig().addr)

    # 2. Database
    console.print("\n[bold]Step 2:[/bold] Database")
    db_path = typer.prompt("  Database path", default=StorageConfig().db_path)

    # 3. Log level
    console.print("\n[bold]Step 3:[/bold] Logging")
    level = typer.prompt("  Log level", default=LoggingConfig().level).upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        console.print(f"[yellow]Unknown level '{level}', using 'INFO'.[/yellow]")
        level = "INFO"

    config = AppConfig(
        server=ServerConfig(addr=addr),
        auth=AuthConfig(secret=secrets.token_urlsafe(48)),
        storage=StorageConfig(db_path=db_path),
        logging=LoggingConfig(level=level),
    )
    save_config(config)

    console.print(f"\n[green]Configuration saved to {CONFIG_FILE}[/green]")
    console.print("\nNext step:")
    console.print("  [bold]histsync-server serve[/bold]  Start the server\n")


@app.command()
def serve(
    addr: str = typer.Option(None, "--addr", "-a", help="Listen address, e.g. http://0.0.0.0:8080"),
    db_path: str = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Start the HTTP server in the foreground."""
    config = load_config()
    if addr:
        config.server.addr = addr
    if db_path:
        config.storage.db_path = db_path

    # Setup logging
    ensure_config_dir()
    log_path = Path(config.logging.file).expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.FileHandler(str(log_path)), logging.StreamHandler()],
    )

    console.print(f"[green]Server starting on {config.server.addr}[/green]")
    console.print("Press Ctrl+C to stop.\n")

    from histsync.api.app import run_server

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        pass
    finally:
        console.print("\n[dim]Server stopped.[/dim]")


async def _search(config: AppConfig, username: str, search_filter: SearchFilter) -> list[Command] | None:
    db = await database.connect(config.storage.db_path)
    try:
        user_id = await UserRepository(db).get_id(username)
        if user_id == 0:
            return None
        return await search_history(CommandRepository(db), user_id, search_filter)
    finally:
        await database.close(db)


async def _status(config: AppConfig, username: str) -> Status | None:
    db = await database.connect(config.storage.db_path)
    try:
        user_id = await UserRepository(db).get_id(username)
        if user_id == 0:
            return None
        aggregator = StatusAggregator(CommandRepository(db), SystemRepository(db))
        return await aggregator.get(username, user_id, process_id=0, start_time=0)
    finally:
        await database.close(db)


@app.command()
def history(
    username: str = typer.Argument(..., help="Account to search"),
    query: str = typer.Option("", "--query", "-q", help="Substring the command must contain"),
    path: str = typer.Option("", "--path", "-p", help="Exact working directory"),
    system: str = typer.Option("", "--system", "-s", help="Originating system name"),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-n", help="Maximum number of results"),
    unique: bool = typer.Option(False, "--unique", "-u", help="Only the latest run of each command"),
) -> None:
    """Search a user's synchronized command history."""
    search_filter = SearchFilter.from_params(
        path=path,
        query=query,
        system_name=system,
        limit=str(limit),
        unique="true" if unique else None,
    )
    results = asyncio.run(_search(load_config(), username, search_filter))
    if results is None:
        console.print(f"[red]Unknown user: {username}[/red]")
        raise typer.Exit(1)
    if not results:
        console.print("[dim]No matching commands.[/dim]")
        return

    table = Table(title=f"History for {username}")
    table.add_column("Time", style="cyan")
    table.add_column("Status")
    table.add_column("System", style="magenta")
    table.add_column("Path", style="dim")
    table.add_column("Command", style="green")
    for command in results:
        table.add_row(
            format_timestamp(command.created),
            format_exit_status(command.exit_status),
            command.system_name,
            command.path,
            truncate(command.command),
        )
    console.print(table)


@app.command()
def status(username: str = typer.Argument(..., help="Account to report on")) -> None:
    """Show usage counters for a user."""
    result = asyncio.run(_status(load_config(), username))
    if result is None:
        console.print(f"[red]Unknown user: {username}[/red]")
        raise typer.Exit(1)

    table = Table(title="Status")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for label, value in status_rows(result):
        table.add_row(label, value)
    console.print(table)


@app.command()
def config(
    key: str = typer.Argument(None, help="Config key (e.g., server.addr)"),
    value: str = typer.Argument(None, help="New value"),
) -> None:
    """View or modify configuration."""
    if not CONFIG_FILE.exists():
        console.print("[red]Not configured. Run 'histsync-server init'.[/red]")
        raise typer.Exit(1)

    cfg = load_config()

    if key is None:
        # Show all config
        table = Table(title="Configuration")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("server.addr", cfg.server.addr)
        table.add_row("auth.secret", cfg.auth.secret[:4] + "..." if cfg.auth.secret else "(stored in database)")
        table.add_row("auth.token_hours", str(cfg.auth.token_hours))
        table.add_row("storage.db_path", cfg.storage.db_path)
        table.add_row("logging.level", cfg.logging.level)
        table.add_row("logging.file", cfg.logging.file)

        console.print(table)
        return

    if value is None:
        console.print("[red]Usage: histsync-server config <key> <value>[/red]")
        raise typer.Exit(1)

    # Set config value
    parts = key.split(".")
    if len(parts) != 2:
        console.print("[red]Key format: section.key (e.g., server.addr)[/red]")
        raise typer.Exit(1)

    section, attr = parts
    section_map = {"server": cfg.server, "auth": cfg.auth, "storage": cfg.storage, "logging": cfg.logging}

    if section not in section_map:
        console.print(f"[red]Unknown section: {section}[/red]")
        raise typer.Exit(1)

    obj = section_map[section]
    if not hasattr(obj, attr):
        console.print(f"[red]Unknown key: {key}[/red]")
        raise typer.Exit(1)

    # Type coercion
    current = getattr(obj, attr)
    try:
        typed_value: object = int(value) if isinstance(current, int) else value
    except ValueError:
        console.print(f"[red]Invalid value type for {key}[/red]")
        raise typer.Exit(1)

    setattr(obj, attr, typed_value)
    save_config(cfg)
    console.print(f"[green]{key} = {typed_value}[/green]")


@app.command()
def logs(
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines"),
    follow: bool = typer.Option(False, "--follow", "-f", help="Follow log output"),
) -> None:
    """View server logs."""
    log_path = Path(load_config().logging.file or LOG_FILE).expanduser().resolve()
    if not log_path.exists():
        console.print("[dim]No log file found.[/dim]")
        return

    if follow:
        import subprocess

        try:
            subprocess.run(["tail", "-f", "-n", str(lines), str(log_path)])
        except KeyboardInterrupt:
            pass
    else:
        content = log_path.read_text()
        log_lines = content.strip().split("\n")
        for line in log_lines[-lines:]:
            console.print(line)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"histsync-server v{__version__}")
    console.print(f"Python: {sys.version.split()[0]}")
    console.print(f"Config: {CONFIG_FILE}")


if __name__ == "__main__":
    app()
