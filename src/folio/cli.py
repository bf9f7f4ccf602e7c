"""
Main CLI dispatcher for folio.

Usage:
    folio domains                               # List domains under the root
    folio projects [list|show|set|unset|tag|resource|review|touch]
    folio images [list|set|unset]
    folio tags [list|add|refresh]
    folio config [show|path|root]
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from folio import __version__

console = Console()


class Context:
    """Shared context for all commands."""

    def __init__(self, verbose: bool = False, dry_run: bool = False, root: Path | None = None):
        self.verbose = verbose
        self.dry_run = dry_run
        self.root_override = root
        self.console = console
        self._state = None
        self._access = None

    @property
    def state(self):
        from folio.core.state import StateStore

        if self._state is None:
            self._state = StateStore()
        return self._state

    @property
    def access(self):
        from folio.core.access import LocalAccessProvider

        if self._access is None:
            self._access = LocalAccessProvider()
        return self._access

    def find_root(self) -> Path:
        """Resolve the portfolio root.

        Raises:
            FileNotFoundError: If no root is configured
        """
        from folio.core.config import find_root

        return find_root(self.root_override, state=self.state, access=self.access)


pass_context = click.make_pass_decorator(Context, ensure=True)


def get_context(ctx: Context | None) -> Context:
    """Commands can be invoked without the main group (tests, scripts)."""
    return ctx if isinstance(ctx, Context) else Context()


def resolve_root_or_exit(ctx: Context) -> Path:
    try:
        return ctx.find_root()
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from e


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("-n", "--dry-run", is_flag=True, help="Preview without making changes")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="FOLIO_ROOT",
    help="Portfolio root folder (overrides the remembered root)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, dry_run: bool, root: Path | None) -> None:
    """Organize a folder tree of creative and technical projects.

    Each top-level folder under the root is a domain; each folder inside a
    domain is a project with an optional _project.json sidecar.
    """
    setup_logging(verbose)
    ctx.obj = Context(verbose=verbose, dry_run=dry_run, root=root)

    if dry_run:
        console.print("[yellow]DRY RUN MODE - No changes will be made[/yellow]")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def domains(ctx, as_json: bool) -> None:
    """List domains (top-level folders) under the root."""
    from folio.core.errors import AccessError
    from folio.core.scanner import list_domains, list_projects, list_reserved_folders

    ctx = get_context(ctx)
    root = resolve_root_or_exit(ctx)

    try:
        with ctx.access.scope(root):
            found = list_domains(root)
            counts = {}
            for domain in found:
                try:
                    counts[domain.name] = len(list_projects(domain))
                except AccessError:
                    counts[domain.name] = 0
            reserved = list_reserved_folders(root)
    except AccessError as e:
        console.print(f"[dim]No domains: {e}[/dim]")
        found, counts, reserved = [], {}, []

    if as_json:
        import json

        click.echo(json.dumps([{"name": d.name, "projects": counts[d.name]} for d in found], indent=2))
        return

    if not found:
        console.print(f"[dim]No domains under {root}[/dim]")
        return

    table = Table(title=f"Domains in {root}")
    table.add_column("Domain", style="cyan")
    table.add_column("Folders", justify="right")
    for domain in found:
        table.add_row(domain.name, str(counts[domain.name]))
    console.print(table)

    if reserved:
        console.print(f"[dim]Reserved: {', '.join(p.name for p in reserved)}[/dim]")


# Import and register command groups (imports after main definition intentional)
from folio.config.commands import config  # noqa: E402
from folio.projects.commands import projects  # noqa: E402
from folio.projects.image_commands import images  # noqa: E402
from folio.tags.commands import tags  # noqa: E402

main.add_command(projects)
main.add_command(images)
main.add_command(tags)
main.add_command(config)


if __name__ == "__main__":
    main()
