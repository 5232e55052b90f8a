"""confwatch CLI entry point."""

import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from confwatch import __version__
from confwatch.config import Config
from confwatch.engine import Engine
from confwatch.errors import ConfwatchError
from confwatch.sources import FileLoader, FileWatcher
from confwatch.store import MemoryStore

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def render_store(store: MemoryStore, title: str) -> Table:
    """Build a table of the store's contents, sorted by key."""
    table = Table(title=title)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in sorted(store.snapshot().items()):
        table.add_row(key, repr(value))
    return table


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """confwatch - load and watch configuration files."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--max-retry", default=0, help="Retries after a failed load")
@click.option("--retry-delay", default=1.0, help="Seconds between retries")
def load(path: Path, max_retry: int, retry_delay: float) -> None:
    """Load a configuration file once and print it."""
    store = MemoryStore()
    engine = Engine(store=store, config=Config(no_exit_on_error=True))
    engine.register_loader(FileLoader(path, max_retry=max_retry, retry_delay=retry_delay))

    try:
        asyncio.run(engine.load())
    except ConfwatchError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from e

    console.print(render_store(store, str(path)))


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--interval", default=1.0, help="Poll interval in seconds")
@click.option("--max-retry", default=3, help="Retries after a failed load")
@click.option("--retry-delay", default=1.0, help="Seconds between retries")
@click.option("--stop-on-failure", is_flag=True, help="Stop watching after a failed reload")
def watch(path: Path, interval: float, max_retry: int, retry_delay: float, stop_on_failure: bool) -> None:
    """Load a configuration file and reprint it on every change."""
    store = MemoryStore()
    engine = Engine(store=store, config=Config(name=str(path)))
    engine.register_loader_watcher(
        FileLoader(path, max_retry=max_retry, retry_delay=retry_delay, stop_on_failure=stop_on_failure),
        FileWatcher(path, interval=interval),
    )
    engine.add_hooks(lambda s: console.print(render_store(s, str(path))))

    async def run_watch() -> None:
        await engine.load_watch()
        console.print(f"[bold green]Watching {path}[/bold green]")
        try:
            await engine.join()
        finally:
            await engine.stop()

    try:
        asyncio.run(run_watch())
    except KeyboardInterrupt:
        console.print("\n[yellow]Watch stopped[/yellow]")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
