"""Typer CLI: capture a stream into rotating log files, inspect a sequence."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from logtee import __version__

app = typer.Typer(
    name="logtee",
    help="Tee standard input or a file into size-bounded, rotating log files.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"logtee v{__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    prefix: str = typer.Option(None, "--prefix", "-p", help="Log file prefix [default: temp]"),
    suffix: str = typer.Option(None, "--suffix", "-s", help="Log file suffix, empty for none [default: log]"),
    file_size: str = typer.Option(None, "--file-size", help="Max size per file, e.g. 10m, 512k [default: 10m]"),
    file_count: int = typer.Option(None, "--file-count", help="Files to keep, 0-1000 [default: 10]"),
    file: Path = typer.Option(None, "--file", "-f", help="Read from this file instead of stdin"),
    continue_read: bool = typer.Option(False, "--continue-read", help="Reopen --file at end of input"),
    daemon: bool = typer.Option(False, "--daemon", help="Detach and run in the background"),
    ident: str = typer.Option(None, "--ident", help="Daemon identity, required with --daemon"),
    config_path: Path = typer.Option(None, "--config", "-c", help="YAML config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug diagnostics"),
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version.", callback=_version_callback, is_eager=True
    ),
) -> None:
    """Capture input into PREFIX_000.SUFFIX, PREFIX_001.SUFFIX, ..."""
    if ctx.invoked_subcommand is not None:
        return

    from logtee.config import TeeConfig, load_config, validate_config
    from logtee.daemon import daemonize
    from logtee.errors import LogteeError
    from logtee.pipeline import open_writer, run_pipeline
    from logtee.utils import deep_merge

    _setup_logging(verbose)

    options = {
        "prefix": prefix,
        "suffix": suffix,
        "file_size": file_size,
        "file_count": file_count,
        "file": str(file) if file else None,
        "ident": ident,
    }
    overrides = {k: v for k, v in options.items() if v is not None}
    if continue_read:
        overrides["continue_read"] = True
    if daemon:
        overrides["daemon"] = True

    config = deep_merge(load_config(config_path), overrides)
    errors = validate_config(config)
    if errors:
        for e in errors:
            err_console.print(f"[red]Config error: {e}[/red]")
        raise typer.Exit(1)

    tee = TeeConfig.from_dict(config)
    if tee.file and not tee.continue_read and not tee.file.is_file():
        err_console.print(f"[red]Input file not found: {tee.file}[/red]")
        raise typer.Exit(1)

    try:
        writer = open_writer(tee)
        if tee.daemon:
            daemonize(tee.ident)
        run_pipeline(tee, writer=writer)
    except LogteeError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)


def _sequence_files(prefix: str, suffix: str) -> list[tuple[int, Path]]:
    """Files on disk belonging to the ``prefix``/``suffix`` sequence, by index."""
    base = Path(prefix)
    tail = rf"\.{re.escape(suffix)}" if suffix else ""
    pattern = re.compile(rf"^{re.escape(base.name)}_(\d{{3,}}){tail}$")
    found = []
    directory = base.parent
    if not directory.is_dir():
        return []
    for path in directory.iterdir():
        match = pattern.match(path.name)
        if match and path.is_file():
            found.append((int(match.group(1)), path))
    return sorted(found)


@app.command()
def status(
    prefix: str = typer.Option("temp", "--prefix", "-p", help="Log file prefix"),
    suffix: str = typer.Option("log", "--suffix", "-s", help="Log file suffix"),
) -> None:
    """List the files of a rotating sequence."""
    from logtee.sizes import format_size

    files = _sequence_files(prefix, suffix)
    if not files:
        console.print(f"  Files: [dim]none for prefix '{prefix}'[/dim]")
        return

    table = Table(title=f"{prefix} log files")
    table.add_column("Index", justify="right")
    table.add_column("File")
    table.add_column("Size", justify="right")

    last_index = files[-1][0]
    total = 0
    for index, path in files:
        size = path.stat().st_size
        total += size
        name = f"{path.name} [green](current)[/green]" if index == last_index else path.name
        table.add_row(str(index), name, format_size(size))

    console.print(table)
    console.print(f"  Total: [cyan]{len(files)} files, {format_size(total)}[/cyan]")
