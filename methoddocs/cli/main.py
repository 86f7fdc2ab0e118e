"""CLI main entry point"""

import json
import logging
import sys
from importlib import resources
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from methoddocs import __version__
from methoddocs.config import SettingsError, load_settings
from methoddocs.core.methods.errors import DuplicateKey, Unavailable, ValidationFailed
from methoddocs.store import SQLiteMethodStore

from .client import ClientError
from .context import get_client, get_settings, get_store
from .methods import methods_group

console = Console()
logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


@click.group()
@click.version_option(version=__version__, prog_name="methoddocs")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="JSON settings file")
@click.option("--api-url", default=None, help="API base URL for client commands")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], api_url: Optional[str]):
    """methoddocs - JavaScript method documentation catalog"""
    ctx.ensure_object(dict)

    if "settings" not in ctx.obj:
        try:
            ctx.obj["settings"] = load_settings(config_path)
        except SettingsError as e:
            console.print(f"[red]Configuration error: {e}[/red]")
            ctx.exit(2)

    settings = get_settings(ctx)
    if api_url:
        settings.api_url = api_url
    configure_logging(settings.log_level)


@cli.command(name="serve")
@click.option("--host", default=None, help="Host to bind to (default from settings)")
@click.option("--port", default=None, type=int, help="Port to bind to (default from settings)")
@click.option("--reload", is_flag=True, help="Enable auto-reload (development mode)")
@click.option("--log-level", default=None, type=click.Choice(["debug", "info", "warning", "error"]),
              help="Log level")
@click.pass_context
def serve_cmd(ctx: click.Context, host: Optional[str], port: Optional[int], reload: bool,
              log_level: Optional[str]):
    """Run the API server."""
    import uvicorn

    from methoddocs.webui.app import create_app

    settings = get_settings(ctx)
    host = host or settings.host
    port = port or settings.port
    log_level = log_level or settings.log_level

    # An unreachable store is fatal: fail here rather than serve errors
    store = get_store(ctx)
    try:
        store.open()
    except Unavailable as e:
        logger.error(f"Cannot open method store: {e}")
        console.print(f"[red]Cannot open method store: {e}[/red]")
        ctx.exit(1)

    console.print(f"[green]Serving methoddocs at http://{host}:{port}[/green]")
    if reload:
        # The reloader re-imports the app, so settings come from file/environment
        store.close()
        uvicorn.run("methoddocs.webui.app:create_app", factory=True, host=host, port=port,
                    log_level=log_level, reload=True)
    else:
        uvicorn.run(create_app(settings, store), host=host, port=port, log_level=log_level)


@cli.command(name="init")
@click.pass_context
def init_cmd(ctx: click.Context):
    """Create the database schema."""
    settings = get_settings(ctx)
    if settings.store_backend != "sqlite":
        console.print("[yellow]Store backend is not sqlite; nothing to initialize.[/yellow]")
        return

    store = SQLiteMethodStore(settings.db_path)
    try:
        with store:
            pass
    except Unavailable as e:
        console.print(f"[red]Error: {e}[/red]")
        ctx.exit(1)
    console.print(f"[green]✓ Method store ready: {settings.db_path}[/green]")


@cli.command(name="seed")
@click.argument("file", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def seed_cmd(ctx: click.Context, file: Optional[Path]):
    """Load methods from a JSON array (default: bundled sample catalog).

    Methods whose name already exists are skipped.
    """
    if file is None:
        raw = resources.files("methoddocs.data").joinpath("sample_methods.json").read_text(encoding="utf-8")
        source = "sample catalog"
    else:
        raw = file.read_text(encoding="utf-8")
        source = str(file)

    try:
        records = json.loads(raw)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {source}: {e}[/red]")
        ctx.exit(1)
    if not isinstance(records, list):
        console.print(f"[red]{source} must contain a JSON array of methods[/red]")
        ctx.exit(1)

    created = skipped = failed = 0
    store = get_store(ctx)
    try:
        store.open()
        for index, record in enumerate(records):
            try:
                store.create(record)
                created += 1
            except DuplicateKey as e:
                skipped += 1
                logger.info(f"Skipping existing method: {e.name}")
            except ValidationFailed as e:
                failed += 1
                console.print(f"[yellow]Record {index}: {e}[/yellow]")
    except Unavailable as e:
        console.print(f"[red]Error: {e}[/red]")
        ctx.exit(1)
    finally:
        store.close()

    console.print(
        f"[green]✓ Seeded from {source}:[/green] {created} created, {skipped} skipped, {failed} invalid"
    )
    if failed:
        ctx.exit(1)


@cli.command(name="status")
@click.pass_context
def status_cmd(ctx: click.Context):
    """Check that the API is up and its store reachable."""
    settings = get_settings(ctx)
    try:
        health = get_client(ctx).health()
    except ClientError as e:
        console.print(f"[red]✗ API at {settings.api_url} is not healthy ({e.status_code or 'no response'}): "
                      f"{e.message}[/red]")
        ctx.exit(1)
        return

    console.print(f"[green]✓ API {health['status']}[/green] version {health['version']}, "
                  f"store {health['store']}, up {health['uptime_seconds']:.0f}s")


cli.add_command(methods_group)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    sys.exit(main())
