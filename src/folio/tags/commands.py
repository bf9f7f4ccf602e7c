"""CLI commands for the tag registry."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console

console = Console()


def _registry(ctx):
    from folio.cli import get_context
    from folio.tags.registry import TagRegistry

    return TagRegistry(get_context(ctx).state)


@click.group(name="tags")
def tags() -> None:
    """Known tags, remembered across sessions."""
    pass


@tags.command(name="list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def list_tags(ctx, as_json: bool) -> None:
    """List every known tag."""
    registry = _registry(ctx)
    known = registry.tags

    if as_json:
        click.echo(json.dumps(known, indent=2))
        return

    if not known:
        console.print("[yellow]No tags yet. Run 'folio tags refresh' to harvest them.[/yellow]")
        return

    for tag in known:
        console.print(f"  [cyan]{tag}[/cyan]")
    console.print(f"\n[dim]{len(known)} tags[/dim]")


@tags.command(name="add")
@click.argument("names", nargs=-1, required=True)
@click.pass_obj
def add_tags(ctx, names: tuple[str, ...]) -> None:
    """Register one or more tags."""
    if ctx and ctx.dry_run:
        console.print(f"[yellow]Would add: {', '.join(names)}[/yellow]")
        return

    added = _registry(ctx).register_many(names)
    if added:
        console.print(f"[green]Added {len(added)} tag(s):[/green] {', '.join(added)}")
    else:
        console.print("[dim]All tags already known.[/dim]")


@tags.command(name="refresh")
@click.argument("scope", required=False, type=click.Path(file_okay=False, path_type=Path))
@click.pass_obj
def refresh(ctx, scope: Path | None) -> None:
    """Harvest tags from every project document under SCOPE (default: the root)."""
    from folio.cli import get_context, resolve_root_or_exit
    from folio.core.errors import AccessError

    context = get_context(ctx)
    target = scope if scope is not None else resolve_root_or_exit(context)

    registry = _registry(ctx)
    try:
        with context.access.scope(target) as resolved:
            with console.status(f"Harvesting tags under {resolved}..."):
                registry.refresh(resolved)
                new_tags = registry.wait()
    except AccessError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from e
    finally:
        registry.shutdown()

    if new_tags:
        console.print(f"[green]Found {len(new_tags)} new tag(s):[/green] {', '.join(new_tags)}")
    else:
        console.print("[dim]No new tags.[/dim]")
    console.print(f"[dim]{len(registry)} tags known[/dim]")
