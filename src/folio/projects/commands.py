"""CLI commands for browsing and editing project folders."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
from rich.console import Console

from folio.core.errors import AccessError, FolioError, ValidationError
from folio.core.rules import IDEAS_FOLDER_NAME, SIDECAR_NAME, is_domain_folder

console = Console()


def _get_dry_run(ctx: Any) -> bool:
    """Extract the dry_run flag from the Click context object."""
    return ctx.dry_run if ctx else False


def _truncate(text: str, max_len: int) -> str:
    if len(text) > max_len:
        return text[:max_len] + "..."
    return text


def _context(ctx: Any):
    from folio.cli import get_context

    return get_context(ctx)


def _root(ctx: Any) -> Path:
    from folio.cli import resolve_root_or_exit

    return resolve_root_or_exit(_context(ctx))


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise SystemExit(1)


def parse_project_ref(ref: str) -> tuple[str, bool, str]:
    """Split ``DOMAIN/NAME`` or ``DOMAIN/_IDEAS_/NAME``.

    Returns:
        (domain, is_idea, name)

    Raises:
        ValueError: If the reference has any other shape
    """
    parts = [p for p in ref.strip().strip("/").split("/") if p]
    if len(parts) == 2 and is_domain_folder(parts[0]) and parts[1] != IDEAS_FOLDER_NAME:
        return parts[0], False, parts[1]
    if len(parts) == 3 and is_domain_folder(parts[0]) and parts[1] == IDEAS_FOLDER_NAME:
        return parts[0], True, parts[2]
    raise ValueError(
        f"Invalid project {ref!r}. Use DOMAIN/NAME or DOMAIN/{IDEAS_FOLDER_NAME}/NAME."
    )


def resolve_project(ctx: Any, ref: str) -> tuple[Path, str, bool]:
    """Resolve a project reference to (folder, domain, is_idea), or exit."""
    try:
        domain, is_idea, name = parse_project_ref(ref)
    except ValueError as e:
        _fail(str(e))
    root = _root(ctx)
    folder = root / domain / IDEAS_FOLDER_NAME / name if is_idea else root / domain / name
    if not folder.is_dir():
        _fail(f"Project folder not found: {folder}")
    return folder, domain, is_idea


def resolve_domain(ctx: Any, domain: str) -> tuple[Path, Path]:
    """Resolve a domain name to (root, domain folder), or exit."""
    if not is_domain_folder(domain):
        _fail(f"{domain!r} is a reserved folder, not a domain.")
    root = _root(ctx)
    path = root / domain
    if not path.is_dir():
        _fail(f"Domain not found: {path}")
    return root, path


def open_session(ctx: Any):
    """Session bound to the current root and access provider."""
    from folio.core.config import get_config
    from folio.projects.session import Session
    from folio.projects.store import ProjectStore

    context = _context(ctx)
    return Session(store=ProjectStore(get_config()), access=context.access, root=_root(ctx))


def open_record(ctx: Any, ref: str):
    """Resolve *ref* and open its record in a fresh session, or exit.

    Returns:
        (session, folder, record)
    """
    folder, domain, is_idea = resolve_project(ctx, ref)
    session = open_session(ctx)
    try:
        record = session.open(folder, domain=domain, is_idea=is_idea)
    except FolioError as e:
        _fail(str(e))
    return session, folder, record


def commit(ctx: Any, session: Any, folder: Path) -> None:
    """Save *folder* if it is dirty, honouring --dry-run.

    Shared tail logic for the editing commands (set, unset, tag, resource).
    """
    if not session.is_dirty(folder):
        console.print("[dim]No changes.[/dim]")
        return

    if _get_dry_run(ctx):
        console.print("[yellow]Dry run: no changes saved.[/yellow]")
        return

    try:
        session.save_project(folder)
    except ValidationError as e:
        for message in e.messages:
            console.print(f"[red]{message}[/red]")
        raise SystemExit(1) from e
    except FolioError as e:
        _fail(str(e))

    console.print(f"[green]Saved {folder.name}/{SIDECAR_NAME}[/green]")


def _ref_label(ref: Any) -> str:
    return f"{IDEAS_FOLDER_NAME}/{ref.name}" if ref.is_idea else ref.name


@click.group(name="projects")
def projects() -> None:
    """Browse and edit project folders.

    PROJECT arguments are DOMAIN/NAME, or DOMAIN/_IDEAS_/NAME for ideas.
    """
    pass


@projects.command(name="list")
@click.argument("domain")
@click.option("-t", "--tag", multiple=True, help="Filter by tag(s)")
@click.option("--unreviewed", is_flag=True, help="Only projects that need review")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def list_projects(ctx, domain: str, tag: tuple[str, ...], unreviewed: bool, as_json: bool) -> None:
    """List the projects of a domain, ideas included."""
    from rich.table import Table

    from folio.core.scanner import folder_summary, list_projects_including_ideas

    root, domain_path = resolve_domain(ctx, domain)
    context = _context(ctx)

    try:
        with context.access.scope(root):
            rows = [(ref, folder_summary(ref.path)) for ref in list_projects_including_ideas(domain_path)]
    except AccessError as e:
        console.print(f"[dim]No projects: {e}[/dim]")
        rows = []

    if tag:
        wanted = set(tag)
        rows = [(ref, info) for ref, info in rows if wanted.issubset(info.tags)]
    if unreviewed:
        rows = [(ref, info) for ref, info in rows if info.needs_review]

    if as_json:
        output = [
            {
                "name": ref.name,
                "idea": ref.is_idea,
                "path": str(ref.path),
                "has_document": info.has_sidecar,
                "status": info.status,
                "visibility": info.visibility,
                "needs_review": info.needs_review,
                "tags": info.tags,
            }
            for ref, info in rows
        ]
        click.echo(json.dumps(output, indent=2))
        return

    if not rows:
        console.print(f"[yellow]No projects found in {domain}[/yellow]")
        return

    table = Table(title=f"{domain} ({len(rows)} projects)")
    table.add_column("", width=1, style="red")
    table.add_column("Project", style="cyan")
    table.add_column("Status", style="blue")
    table.add_column("Visibility", style="green")
    table.add_column("Files", justify="right")
    table.add_column("Tags")

    for ref, info in rows:
        table.add_row(
            "!" if info.needs_review else "",
            _ref_label(ref),
            info.status or ("[dim]-[/dim]" if not info.has_sidecar else "?"),
            info.visibility or "",
            str(info.entry_count),
            _truncate(", ".join(info.tags), 40),
        )

    console.print(table)
    console.print("[dim]! = needs review[/dim]")


@projects.command()
@click.argument("project")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def show(ctx, project: str, as_json: bool) -> None:
    """Show a project's record (seeded if it has no document yet)."""
    from rich.panel import Panel
    from rich.syntax import Syntax

    from folio.core.scanner import read_document
    from folio.projects.model import PROJECT_FIELDS

    _session, folder, record = open_record(ctx, project)
    data = record.to_dict()

    document = read_document(folder)
    extra = sorted(k for k in document if k not in PROJECT_FIELDS) if document else []

    if as_json:
        click.echo(json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False))
        return

    syntax = Syntax(json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False), "json", theme="monokai", line_numbers=True)
    title = f"Project: {project}" if document is not None else f"Project: {project} (no document yet)"
    console.print(Panel(syntax, title=title))
    if extra:
        console.print(f"[dim]Other keys kept on save: {', '.join(extra)}[/dim]")


@projects.command(name="fields")
def fields_cmd() -> None:
    """List all editable project fields and their types."""
    from rich.table import Table

    from folio.projects.field_ops import FIELD_SCHEMA, choices_for

    table = Table(title="Project Fields")
    table.add_column("Field", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Description")
    table.add_column("Constraints", style="yellow")

    for name, fdef in sorted(FIELD_SCHEMA.items()):
        if name == "category":
            constraint = "choices depend on the domain"
        else:
            choices = choices_for(name)
            constraint = f"choices: {', '.join(choices)}" if choices else "-"
        table.add_row(name, fdef.field_type.value, fdef.description, constraint)

    console.print(table)
    console.print("\n[dim]List fields accept 'a,b,c' or a JSON array.[/dim]")


@projects.command(name="set")
@click.argument("project")
@click.argument("field")
@click.argument("value")
@click.pass_obj
def set_cmd(ctx, project: str, field: str, value: str) -> None:
    """Set a project field value.

    \b
    Examples:
        folio projects set Software/folio status done
        folio projects set Software/folio tags "python,cli"
        folio projects set Writing/_IDEAS_/novel creative_genres SciFi,Drama
    """
    from folio.core.config import get_config
    from folio.projects.field_ops import FIELD_SCHEMA, coerce_value, print_change, set_field

    schema = FIELD_SCHEMA.get(field)
    if schema is None:
        console.print(f"[red]Unknown field: {field!r}[/red]")
        console.print("[dim]Run 'folio projects fields' to see valid fields.[/dim]")
        raise SystemExit(1)

    session, folder, record = open_record(ctx, project)

    try:
        updated, result = set_field(record, field, coerce_value(value, schema), config=get_config(), slug=project)
    except ValueError as e:
        _fail(str(e))

    print_change(result, console)
    session.edit(folder, updated)
    commit(ctx, session, folder)


@projects.command(name="unset")
@click.argument("project")
@click.argument("field")
@click.pass_obj
def unset_cmd(ctx, project: str, field: str) -> None:
    """Reset a project field to its empty value."""
    from folio.projects.field_ops import print_change, unset_field

    session, folder, record = open_record(ctx, project)

    try:
        updated, result = unset_field(record, field, slug=project)
    except ValueError as e:
        _fail(str(e))

    print_change(result, console)
    session.edit(folder, updated)
    commit(ctx, session, folder)


@projects.command(name="tag")
@click.argument("project")
@click.option("--add", "add_tags", multiple=True, help="Tag(s) to add")
@click.option("--remove", "remove_tags", multiple=True, help="Tag(s) to remove")
@click.option("--set", "set_tags", help="Replace all tags (comma-separated)")
@click.pass_obj
def tag_cmd(ctx, project: str, add_tags: tuple[str, ...], remove_tags: tuple[str, ...], set_tags: str | None) -> None:
    """Add, remove, or replace a project's tags.

    New tags are also remembered in the tag registry.

    \b
    Examples:
        folio projects tag Software/folio --add python --add cli
        folio projects tag Software/folio --remove old-tag
        folio projects tag Software/folio --set "python,cli"
    """
    from folio.core.field_ops import split_list
    from folio.projects.field_ops import modify_list_field, print_change
    from folio.tags.registry import TagRegistry

    if not add_tags and not remove_tags and set_tags is None:
        _fail("Specify --add, --remove, or --set.")

    session, folder, record = open_record(ctx, project)

    updated, result = modify_list_field(
        record,
        "tags",
        add=list(add_tags) or None,
        remove=list(remove_tags) or None,
        replace_with=split_list(set_tags) if set_tags is not None else None,
        slug=project,
    )
    print_change(result, console)

    if not _get_dry_run(ctx):
        TagRegistry(_context(ctx).state).register_many(result.new_value)

    session.edit(folder, updated)
    commit(ctx, session, folder)


@projects.command(name="resource")
@click.argument("project")
@click.option("--add", "add_link", nargs=3, metavar="TYPE LABEL URL", help="Add a resource link")
@click.option("--remove", "remove_id", metavar="ID", help="Remove a resource by id (prefix allowed)")
@click.pass_obj
def resource_cmd(ctx, project: str, add_link: tuple[str, str, str] | None, remove_id: str | None) -> None:
    """List, add, or remove a project's resource links."""
    from rich.table import Table

    from folio.core.config import get_config
    from folio.projects.field_ops import add_resource, remove_resource

    session, folder, record = open_record(ctx, project)

    if not add_link and not remove_id:
        if not record.resources:
            console.print("[dim]No resources.[/dim]")
            return
        table = Table(title=f"Resources: {project}")
        table.add_column("ID", style="dim")
        table.add_column("Type", style="green")
        table.add_column("Label", style="cyan")
        table.add_column("URL")
        for link in record.resources:
            table.add_row(link.id[:8], link.type, link.label, link.url)
        console.print(table)
        return

    updated = record
    if remove_id:
        updated, removed = remove_resource(updated, remove_id)
        if removed is None:
            _fail(f"No resource with id {remove_id!r}")
        console.print(f"[cyan]{project}[/cyan]: removed {removed.type} {removed.label!r}")
    if add_link:
        resource_type, label, url = add_link
        try:
            updated, link = add_resource(updated, resource_type, label, url, config=get_config())
        except ValueError as e:
            _fail(str(e))
        console.print(f"[cyan]{project}[/cyan]: added {link.type} {link.label!r} ({link.id[:8]})")

    session.edit(folder, updated)
    commit(ctx, session, folder)


@projects.command(name="review")
@click.argument("domain")
@click.option("--after", help="Start after this project (NAME or _IDEAS_/NAME)")
@click.option("--all", "show_all", is_flag=True, help="List every project that needs review")
@click.pass_obj
def review(ctx, domain: str, after: str | None, show_all: bool) -> None:
    """Show the next project in a domain that needs review."""
    from folio.core.scanner import ProjectRef, list_projects_including_ideas, needs_review, next_unreviewed

    root, domain_path = resolve_domain(ctx, domain)
    context = _context(ctx)

    after_ref = None
    if after:
        prefix = f"{IDEAS_FOLDER_NAME}/"
        if after.startswith(prefix):
            after_ref = ProjectRef(owner=domain_path / IDEAS_FOLDER_NAME, name=after[len(prefix):])
        else:
            after_ref = ProjectRef(owner=domain_path, name=after)

    try:
        with context.access.scope(root):
            if show_all:
                pending = [ref for ref in list_projects_including_ideas(domain_path) if needs_review(ref.path)]
            else:
                found = next_unreviewed(domain_path, after=after_ref)
                pending = [found] if found is not None else []
    except AccessError as e:
        console.print(f"[dim]Cannot scan {domain}: {e}[/dim]")
        pending = []

    if not pending:
        console.print("[green]Nothing to review.[/green]")
        return
    for ref in pending:
        console.print(f"{domain}/{_ref_label(ref)}")


@projects.command(name="touch")
@click.argument("project")
@click.pass_obj
def touch(ctx, project: str) -> None:
    """Save a project's record, creating its document if needed.

    Marks non-idea projects as reviewed.
    """
    session, folder, record = open_record(ctx, project)

    if _get_dry_run(ctx):
        console.print(f"[yellow]Would save {record.id} ({record.status.value})[/yellow]")
        return

    try:
        saved = session.save_project(folder)
    except ValidationError as e:
        for message in e.messages:
            console.print(f"[red]{message}[/red]")
        raise SystemExit(1) from e
    except FolioError as e:
        _fail(str(e))

    state = "reviewed" if saved.reviewed.is_reviewed else "not reviewed"
    console.print(f"[green]Saved {folder.name}/{SIDECAR_NAME}[/green] [dim]({state})[/dim]")
