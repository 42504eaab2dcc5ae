"""Command-line interface for epubshelf."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from .config import CACHE_WINDOW_SECONDS, LIBRARY_ROOT_NAME
from .metadata import extract
from .models import Book, Folder
from .scanner import scan_library

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

_root_option = click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=LIBRARY_ROOT_NAME,
    envvar="EPUBSHELF_ROOT",
    show_default=True,
    help="Library directory to scan.",
)


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx):
    """epubshelf utilities.
    If invoked without a sub-command it starts the web server (same as `run`)."""
    if ctx.invoked_subcommand is None:
        ctx.forward(run)


@cli.command("run", help="Run the web server.")
@_root_option
@click.option("--host", default="127.0.0.1")
@click.option("--port", default=5000, type=int)
@click.option("--debug/--no-debug", default=False)
@click.option(
    "--cache-ttl",
    default=CACHE_WINDOW_SECONDS,
    type=float,
    envvar="EPUBSHELF_CACHE_TTL",
    help="Seconds a library scan is reused.",
)
def run(root: Path, host: str, port: int, debug: bool, cache_ttl: float):
    """Run the epubshelf web application."""
    from .web import create_app

    app = create_app(root, cache_ttl=cache_ttl)
    click.echo(f"* Serving {root} on http://{host}:{port} (debug={debug})")
    app.run(host=host, port=port, debug=debug)


@cli.command("scan", help="Scan the library once and print the tree.")
@_root_option
@click.option("--json", "as_json", is_flag=True, help="Print the tree as JSON.")
def scan(root: Path, as_json: bool):
    degraded: list[str] = []

    def _extract(abs_path: str, rel_path: str):
        result = extract(abs_path, rel_path)
        if result.degraded:
            degraded.append(rel_path)
        return result.metadata

    library = scan_library(root, extractor=_extract)
    if as_json:
        click.echo(json.dumps(library.to_dict(), indent=2, ensure_ascii=False))
        return
    _echo_tree(library, depth=0, degraded=set(degraded))
    total = sum(1 for _ in library.books())
    click.echo(f"{total} books, {len(degraded)} without readable metadata.")


def _echo_tree(folder: Folder, depth: int, degraded: set[str]) -> None:
    click.echo(f"{'  ' * depth}{folder.name}/")
    for child in folder.children:
        if isinstance(child, Folder):
            _echo_tree(child, depth + 1, degraded)
        elif isinstance(child, Book):
            marker = " [unreadable]" if child.path in degraded else ""
            click.echo(f"{'  ' * (depth + 1)}{child.name}: {child.metadata.title}{marker}")


if __name__ == "__main__":  # pragma: no cover
    cli()
