"""Thin CLI wrapper for rocksdb_env.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.

Invoked without a subcommand it runs the whole pipeline and prints the
export lines, so the usual entry point is::

    eval "$(rocksdb-env)"
"""

import json
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from rocksdb_env import __version__
from rocksdb_env.config import get_settings, print_settings_json
from rocksdb_env.errors import RocksdbEnvError
from rocksdb_env.log import configure_logging

app = typer.Typer(
    name="rocksdb-env",
    help="Build a static RocksDB archive and print ROCKSDB_* shell exports",
    invoke_without_command=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"rocksdb-env version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Build a static RocksDB archive and print ROCKSDB_* shell exports.

    With no subcommand: clone rust-rocksdb if needed, build it, locate
    librocksdb.a and print ROCKSDB_LIB_DIR and ROCKSDB_STATIC exports.
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        err_console.print(
            f"[red]Invalid configuration: {escape(str(e))}[/red]", highlight=False
        )
        raise typer.Exit(code=1) from None
    configure_logging(settings.log_level)

    if ctx.invoked_subcommand is not None:
        return

    from rocksdb_env.builds.environment import emit_environment
    from rocksdb_env.builds.service import build_and_locate

    try:
        outcome = build_and_locate(settings)
        exports = emit_environment(outcome.lib_dir)
    except RocksdbEnvError as e:
        err_console.print(
            f"[red]Error ({e.step}) {escape(f'[{e.code}]')}: {escape(str(e))}[/red]",
            highlight=False,
            soft_wrap=True,
        )
        if e.log_path is not None:
            err_console.print(
                f"See log: {escape(str(e.log_path))}", highlight=False, soft_wrap=True
            )
        raise typer.Exit(code=e.exit_code) from None

    typer.echo(exports, nl=False)


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        typer.echo(print_settings_json(settings))
    else:
        build_timeout = settings.build_timeout or "(none)"
        clone_timeout = settings.clone_timeout or "(none)"
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Source:[/bold]")
        console.print(f"  Repository URL:      {settings.repo_url}")
        console.print(f"  Source directory:    {settings.source_dir}")
        console.print()
        console.print("[bold]Build:[/bold]")
        console.print(f"  Policy:              {settings.policy.value}")
        console.print(f"  Profile:             {settings.build_profile}")
        console.print(f"  Default features:    {not settings.no_default_features}")
        console.print(f"  Features:            {', '.join(settings.features)}")
        console.print()
        console.print("[bold]Artifact:[/bold]")
        console.print(f"  Archive name:        {settings.archive_name}")
        console.print(f"  Cached archive:      {settings.cached_archive_path}")
        console.print(f"  Ambiguity policy:    {settings.ambiguity.value}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Log directory:       {settings.log_dir}")
        console.print(f"  Log level:           {settings.log_level}")
        console.print(f"  Clone timeout:       {clone_timeout}")
        console.print(f"  Build timeout:       {build_timeout}")


@app.command()
def info(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show checkout and cached archive status without building."""
    from rocksdb_env.builds.service import get_cache_info

    data = get_cache_info()

    if json_output:
        typer.echo(json.dumps(data, indent=2))
        return

    console.print("[bold]Archive Cache Information:[/bold]")
    console.print()
    console.print(f"  Source directory: {data['source_dir']}")
    console.print(f"  Source present:   {data['source_present']}")
    console.print(f"  Policy:           {data['policy']}")
    console.print(f"  Cached archive:   {data['cached_archive']}")
    if data["cached"]:
        console.print(f"  Size:             {data['size_bytes']} bytes")
        console.print(f"  SHA-256:          {data['sha256']}")
    else:
        console.print("  [yellow]No cached archive[/yellow]")


@app.command("clear-cache")
def clear_cache_cmd(
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run", "-n", help="Show what would be removed without removing it"
        ),
    ] = False,
) -> None:
    """Remove the cached archive so the next run rebuilds."""
    from rocksdb_env.builds.service import clear_cache

    try:
        removed = clear_cache(dry_run=dry_run)
    except OSError as e:
        err_console.print(
            f"[red]Failed to remove cached archive: {escape(str(e))}[/red]"
        )
        raise typer.Exit(code=1) from None

    if removed is None:
        console.print("[yellow]No cached archive to remove[/yellow]")
    elif dry_run:
        console.print(f"[DRY RUN] Would remove {removed}", markup=False)
    else:
        console.print(f"Removed {removed}", markup=False)


__all__ = ["app"]
