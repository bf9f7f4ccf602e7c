"""
Configuration CLI commands.

Vocabularies come from the ``vocabularies`` mapping in config.yaml; the
remembered root lives in the state file.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from folio.core.config import Config, get_config, get_global_config_path, load_global_config
from folio.core.state import ROOT_TOKEN_KEY, get_state_path

console = Console()


def _format(value) -> str:
    if isinstance(value, dict):
        return "; ".join(
            f"{k}: {', '.join(v) if isinstance(v, list) else v}" for k, v in value.items()
        )
    return ", ".join(value)


@click.group()
def config():
    """Show folio configuration.

    Vocabularies are read from config.yaml; the default root is remembered
    in the state file.
    """
    pass


@config.command(name="show")
@click.option("--all", "show_all", is_flag=True, help="Show all vocabularies including defaults")
def show_cmd(show_all: bool):
    """Show the vocabularies used when editing projects.

    Without --all, only shows vocabularies overridden in config.yaml.
    """
    overrides = load_global_config().get("vocabularies") or {}
    if not isinstance(overrides, dict):
        overrides = {}
    config_path = get_global_config_path()

    if not overrides and not show_all:
        console.print("[dim]No custom vocabularies set. Using defaults.[/dim]")
        console.print(f"[dim]Config file: {config_path}[/dim]")
        console.print("\n[dim]Use 'folio config show --all' to see all vocabularies.[/dim]")
        return

    current = get_config()
    table = Table(title="Vocabularies", show_header=True, header_style="bold cyan")
    table.add_column("Name")
    table.add_column("Values", style="green")
    table.add_column("Source", style="dim")

    for f in fields(Config):
        is_custom = f.name in overrides
        if show_all or is_custom:
            table.add_row(f.name, _format(getattr(current, f.name)), "config.yaml" if is_custom else "default")

    console.print(table)
    console.print(f"\n[dim]Config file: {config_path}[/dim]")


@config.command(name="path")
def path_cmd():
    """Print the config and state file locations."""
    console.print(f"config: {get_global_config_path()}")
    console.print(f"state:  {get_state_path()}")


@config.command(name="root")
@click.argument("path", required=False, type=click.Path(file_okay=False, path_type=Path))
@click.option("--clear", is_flag=True, help="Forget the remembered root")
@click.pass_obj
def root_cmd(ctx, path: Path | None, clear: bool):
    """Show the portfolio root, or remember PATH as the default root.

    \b
    Examples:
        folio config root                # Show the current root
        folio config root ~/Portfolio    # Remember a new root
        folio config root --clear        # Forget the remembered root
    """
    from folio.cli import get_context
    from folio.core.config import remember_root
    from folio.core.errors import AccessError

    context = get_context(ctx)

    if clear:
        if context.dry_run:
            console.print("[yellow]Would forget the remembered root[/yellow]")
            return
        if context.state.delete(ROOT_TOKEN_KEY):
            console.print("[green]Remembered root cleared[/green]")
        else:
            console.print("[dim]No root was remembered.[/dim]")
        return

    if path is None:
        try:
            root = context.find_root()
        except FileNotFoundError as e:
            console.print(f"[yellow]{e}[/yellow]")
            return
        console.print(str(root))
        return

    if context.dry_run:
        console.print(f"[yellow]Would remember {path.expanduser().resolve()} as the root[/yellow]")
        return

    try:
        resolved = remember_root(path, state=context.state, access=context.access)
    except AccessError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from e
    console.print(f"[green]Root set to {resolved}[/green]")
