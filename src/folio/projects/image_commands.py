"""CLI commands for project image slots."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console

from folio.core.errors import FolioError, ValidationError

console = Console()


def _parse_slot(text: str):
    from folio.projects.images import ImageSlot

    try:
        return ImageSlot.parse(text)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="SLOT") from e


def _report_failure(e: FolioError) -> None:
    if isinstance(e, ValidationError):
        for message in e.messages:
            console.print(f"[red]{message}[/red]")
    else:
        console.print(f"[red]{e}[/red]")
    raise SystemExit(1) from e


@click.group(name="images")
def images() -> None:
    """Manage a project's image slots.

    \b
    Slots: thumbnail, banner, icon-square, icon-circle,
           poster-landscape, poster-portrait
    """
    pass


@images.command(name="list")
@click.argument("project")
@click.pass_obj
def list_images(ctx, project: str) -> None:
    """Show which slots are filled on disk and in the document."""
    from rich.table import Table

    from folio.projects.commands import resolve_project
    from folio.projects.images import ImageSlot, existing_slots, read_images

    folder, _domain, _is_idea = resolve_project(ctx, project)
    on_disk = set(existing_slots(folder))
    recorded = read_images(folder)

    table = Table(title=f"Images: {project}")
    table.add_column("Slot", style="cyan")
    table.add_column("Label")
    table.add_column("File", style="green")
    table.add_column("Recorded")

    for slot in ImageSlot:
        file_name = slot.canonical_file_name if slot in on_disk else ""
        value = recorded.get(slot.json_key)
        table.add_row(
            slot.value,
            slot.label,
            file_name or "[dim]-[/dim]",
            "yes" if isinstance(value, str) else "[dim]no[/dim]",
        )

    console.print(table)
    if recorded.get("directory"):
        console.print(f"[dim]Directory: {recorded['directory']}[/dim]")


@images.command(name="set")
@click.argument("project")
@click.argument("slot")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def set_image(ctx, project: str, slot: str, source: Path) -> None:
    """Copy SOURCE into a slot and record it in the project document.

    \b
    Examples:
        folio images set Software/folio thumbnail ~/Desktop/shot.png
        folio images set Writing/_IDEAS_/novel poster-portrait cover.png
    """
    from folio.core.config import get_config
    from folio.projects.commands import _get_dry_run, open_record
    from folio.projects.images import attach_image

    image_slot = _parse_slot(slot)
    session, folder, record = open_record(ctx, project)

    if _get_dry_run(ctx):
        console.print(f"[yellow]Would copy {source} to {image_slot.canonical_file_name}[/yellow]")
        return

    try:
        with session.access.scope(folder, write=True):
            attach_image(record, folder, image_slot, source, config=get_config())
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from e
    except FolioError as e:
        _report_failure(e)

    session.forget(folder)
    console.print(f"[green]{image_slot.label} set from {source.name}[/green]")


@images.command(name="unset")
@click.argument("project")
@click.argument("slot")
@click.pass_obj
def unset_image(ctx, project: str, slot: str) -> None:
    """Delete a slot's files and drop it from the project document."""
    from folio.core.config import get_config
    from folio.projects.commands import _get_dry_run, open_record
    from folio.projects.images import detach_image

    image_slot = _parse_slot(slot)
    session, folder, record = open_record(ctx, project)

    if _get_dry_run(ctx):
        console.print(f"[yellow]Would remove {image_slot.canonical_file_name}[/yellow]")
        return

    try:
        with session.access.scope(folder, write=True):
            detach_image(record, folder, image_slot, config=get_config())
    except FolioError as e:
        _report_failure(e)

    session.forget(folder)
    console.print(f"[green]{image_slot.label} removed[/green]")
