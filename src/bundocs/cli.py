"""Command line interface for bundocs."""

from __future__ import annotations

import logging
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

from bundocs import __version__
from bundocs.config import DEFAULT_SEARCH_LIMIT, AppConfig, detect_bun_version
from bundocs.corpus.locator import CorpusLocator
from bundocs.errors import BundocsError, InvalidQueryError
from bundocs.index.builder import IndexBuilder
from bundocs.models import CorpusLocation
from bundocs.server import DocsService, serve_stdio
from bundocs.web.app import create_app


console = Console()
err_console = Console(stderr=True)
app = typer.Typer(help="bundocs - Bun documentation for MCP clients")


@dataclass(slots=True)
class Settings:
    config: AppConfig
    bun_version: str | None = None

    def resolve_version(self) -> str:
        return self.bun_version or detect_bun_version()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _is_interactive() -> bool:
    return sys.stdout.isatty()


def _fail(exc: Exception) -> typer.Exit:
    err_console.print(f"Error: {exc}", style="red", markup=False)
    return typer.Exit(code=1)


def _load_service(settings: Settings) -> Tuple[DocsService, CorpusLocation]:
    config = settings.config
    try:
        version = settings.resolve_version()
        location = CorpusLocator(config).locate(version)
        index = IndexBuilder(config).build(location.path)
    except BundocsError as exc:
        raise _fail(exc) from exc
    return DocsService(index, config), location


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Print the version and exit.",
    ),
    bun_version: Optional[str] = typer.Option(
        None,
        "--bun-version",
        envvar="BUNDOCS_BUN_VERSION",
        help="Bun version to serve docs for (default: output of 'bun --version').",
    ),
    cache_root: Optional[Path] = typer.Option(
        None, "--cache-root", envvar="BUNDOCS_CACHE_ROOT", help="Documentation cache directory"
    ),
    local_docs: Optional[Path] = typer.Option(
        None, "--local-docs", envvar="BUNDOCS_LOCAL_DOCS", help="Project-local docs directory"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose logging"),
) -> None:
    """Serve Bun documentation over MCP (stdio) when no command is given."""
    _setup_logging(verbose)
    config = AppConfig(cache_root=cache_root)
    if local_docs is not None:
        config.local_docs_dir = local_docs
    ctx.obj = Settings(config=config, bun_version=bun_version)

    if ctx.invoked_subcommand is None:
        serve(ctx.obj)


def serve(settings: Settings) -> None:
    service, location = _load_service(settings)
    if _is_interactive():
        console.print(
            f"Bun documents cached in {location.path}, please attach by a MCP client, exiting...",
            markup=False,
            soft_wrap=True,
        )
        return
    serve_stdio(service)


@app.command()
def search(
    ctx: typer.Context,
    pattern: str = typer.Argument(..., help="Regular expression to search for"),
    path: str = typer.Option("", "--path", help="Only search below this path prefix"),
    limit: int = typer.Option(DEFAULT_SEARCH_LIMIT, help="Number of results to display"),
    flags: Optional[str] = typer.Option(None, "--flags", help="Regex flags, e.g. 'i'"),
) -> None:
    """Search the documentation and print ranked matches."""
    service, _ = _load_service(ctx.obj)
    try:
        results = service.searcher.search(pattern, path=path, limit=limit, flags=flags)
    except InvalidQueryError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Matches")
    table.add_column("URI")
    table.add_column("Title")

    for result in results:
        resource = service.index.get(service.index.slug_for(result.uri))
        table.add_row(str(result.match_count), result.uri, resource.name if resource else "")

    console.print(table)


@app.command()
def web(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Serve the documentation index over HTTP."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - optional extra
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    service, location = _load_service(ctx.obj)
    console.print(f"Starting web interface on http://{host}:{port} (docs: {location.path})")
    uvicorn.run(create_app(service), host=host, port=port, reload=False, log_level="info")


@app.command()
def prune(ctx: typer.Context) -> None:
    """Remove cached documentation of other Bun versions."""
    settings: Settings = ctx.obj
    try:
        current = settings.resolve_version()
    except BundocsError as exc:
        raise _fail(exc) from exc

    cache_root = settings.config.resolve_cache_root()
    if not cache_root.is_dir():
        console.print("[yellow]Cache not found, nothing to prune.[/yellow]")
        return

    removed = 0
    for entry in sorted(cache_root.iterdir()):
        if not entry.is_dir() or entry.name == current:
            continue
        # Only directories laid out as a docs cache belong to us.
        if settings.config.find_manifest(settings.config.cache_dir_for(entry.name)) is None:
            continue
        shutil.rmtree(entry)
        removed += 1
    console.print(f"Removed {removed} cached versions.")
