"""
CLI for csindex.

Prepares the on-disk index used by code search tools.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from csindex.core.config import ConfigurationError, load_config
from csindex.core.logging_setup import configure_logging
from csindex.core.profiling import cpu_profile
from csindex.infrastructure.index_store import IndexNotFoundError, IndexStoreError
from csindex.services import BuildRequest, create_services

# Diagnostics go to stderr; stdout only carries --list output
err_console = Console(stderr=True)

app = typer.Typer(
    name="csindex",
    add_completion=False,
)


def _fail(error: Exception) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(1)


@app.command()
def main(
    paths: Optional[list[str]] = typer.Argument(
        None, help="Files or directory trees to add to the index"
    ),
    list_paths: bool = typer.Option(
        False, "--list", help="List indexed paths and exit"
    ),
    reset: bool = typer.Option(False, "--reset", help="Discard existing index"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Print extra information"
    ),
    cpuprofile: Optional[Path] = typer.Option(
        None, "--cpuprofile", help="Write cpu profile to this file"
    ),
    exclude: Optional[list[str]] = typer.Option(
        None,
        "--exclude",
        "-e",
        help="Regular expression for directories to ignore. Can be specified multiple times.",
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML or JSON configuration file"
    ),
):
    """
    Prepare the trigram index used for code search.

    The index is the file named by $CSINDEX_FILE, or else ~/.csindex.
    Each PATH is added to the index while other already indexed paths are
    preserved. With no PATH, the paths already in the index are re-indexed,
    which makes a bare 'csindex' suitable for a nightly cron job.

    --reset deletes the existing index before indexing the new paths.
    With no PATH, --reset removes the index.
    """
    try:
        config = load_config(config_path)
        configure_logging(config.logging, verbose=verbose)
        services = create_services(
            config=config,
            extra_excludes=exclude or [],
            verbose=verbose,
        )
    except ConfigurationError as e:
        _fail(e)

    builder = services.builder

    if list_paths:
        try:
            roots = builder.list_roots()
        except IndexNotFoundError as e:
            err_console.print(f"[yellow]{escape(str(e))}[/yellow]")
            return
        except IndexStoreError as e:
            _fail(e)
        for root in roots:
            typer.echo(root)
        return

    request = BuildRequest(paths=list(paths or []), reset=reset)
    try:
        with cpu_profile(cpuprofile):
            builder.run(request)
    except (ConfigurationError, IndexStoreError) as e:
        _fail(e)


if __name__ == "__main__":
    app()
