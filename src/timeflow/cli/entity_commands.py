"""CLI commands for managing clients and projects."""

import json
from typing import Any, Optional

import click
from rich.table import Table

from timeflow.cli.common import console, fail, get_api, get_config, print_validation_errors
from timeflow.core.errors import NotFoundError
from timeflow.core.models import Client, PagedResult, Project
from timeflow.core.validation import validate_client, validate_project


def parse_tags(tags: Optional[str]) -> list[str]:
    """Split a comma-separated tag option."""
    if not tags:
        return []
    return [t.strip() for t in tags.split(",") if t.strip()]


def _page_size(ctx: click.Context, page_size: Optional[int]) -> int:
    if page_size is not None:
        return page_size
    return int(get_config(ctx).get("api.page_size", 10))


def _echo_json(result: PagedResult[Any]) -> None:
    click.echo(
        json.dumps(
            {
                "items": [item.to_dict() for item in result.items],
                "total": result.total,
                "page": result.page,
                "pageSize": result.page_size,
            },
            indent=2,
        )
    )


def _print_footer(result: PagedResult[Any]) -> None:
    console.print(
        f"[dim]Page {result.page} of {result.total_pages} · {result.total} items[/dim]"
    )


def _client_form(client: Client) -> dict[str, Any]:
    return {
        "name": client.name,
        "company": client.company,
        "contact": client.contact.to_dict(),
        "notes": client.notes,
    }


def _project_form(project: Project) -> dict[str, Any]:
    return {
        "name": project.name,
        "client_id": project.client_id,
        "status": project.status.value,
        "rate_per_hour": project.rate_per_hour,
        "tags": list(project.tags),
        "notes": project.notes,
    }


# Clients


@click.group()
def clients() -> None:
    """Manage clients."""
    pass


@clients.command("list")
@click.option("-q", "--query", default="", help="Search name, company, email or phone")
@click.option("--page", default=1, type=click.IntRange(min=1), help="Page number")
@click.option("--page-size", type=click.IntRange(min=1), help="Clients per page")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def clients_list(
    ctx: click.Context, query: str, page: int, page_size: Optional[int], as_json: bool
) -> None:
    """List clients.

    Example:
        timeflow clients list -q acme
    """
    api = get_api(ctx)
    result = api.list_clients(query, page=page, page_size=_page_size(ctx, page_size))

    if as_json:
        _echo_json(result)
        return

    if result.total == 0:
        console.print("[yellow]No clients found[/yellow]")
        return

    table = Table(title="Clients")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Company")
    table.add_column("Email")
    table.add_column("Phone")

    for client in result.items:
        table.add_row(
            client.id,
            client.name,
            client.company or "",
            client.contact.email or "",
            client.contact.phone or "",
        )

    console.print(table)
    _print_footer(result)


@clients.command("add")
@click.argument("name")
@click.option("--company", help="Company name")
@click.option("--email", help="Contact email")
@click.option("--phone", help="Contact phone")
@click.option("--website", help="Website URL")
@click.option("-n", "--notes", help="Notes")
@click.pass_context
def clients_add(
    ctx: click.Context,
    name: str,
    company: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    website: Optional[str],
    notes: Optional[str],
) -> None:
    """Create a client.

    Example:
        timeflow clients add "Acme Corp" --email hello@acme.com
    """
    result = validate_client(
        {
            "name": name,
            "company": company,
            "contact": {"email": email, "phone": phone, "website": website},
            "notes": notes,
        }
    )
    if not result.ok or result.value is None:
        print_validation_errors(result.errors)

    client = get_api(ctx).create_client(result.value)
    console.print(f"[green]✓[/green] Created client: {client.name}")
    console.print(f"  ID: {client.id}")


@clients.command("edit")
@click.argument("client_id")
@click.option("--name", help="New name")
@click.option("--company", help="New company name")
@click.option("--email", help="New contact email")
@click.option("--phone", help="New contact phone")
@click.option("--website", help="New website URL")
@click.option("-n", "--notes", help="New notes")
@click.pass_context
def clients_edit(
    ctx: click.Context,
    client_id: str,
    name: Optional[str],
    company: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    website: Optional[str],
    notes: Optional[str],
) -> None:
    """Update a client. Pass an empty string to clear a field.

    Example:
        timeflow clients edit <id> --phone "+1 555 123"
    """
    api = get_api(ctx)
    existing = api.get_client(client_id)
    if existing is None:
        fail(f"Client not found: {client_id}")

    form = _client_form(existing)
    for key, value in (("name", name), ("company", company), ("notes", notes)):
        if value is not None:
            form[key] = value
    for key, value in (("email", email), ("phone", phone), ("website", website)):
        if value is not None:
            form["contact"][key] = value

    result = validate_client(form)
    if not result.ok or result.value is None:
        print_validation_errors(result.errors)

    client = api.update_client(client_id, result.value)
    console.print(f"[green]✓[/green] Updated client: {client.name}")


@clients.command("delete")
@click.argument("client_id")
@click.option("-y", "--yes", is_flag=True, help="Delete without asking")
@click.pass_context
def clients_delete(ctx: click.Context, client_id: str, yes: bool) -> None:
    """Delete a client. Its projects are kept and become unassigned.

    Example:
        timeflow clients delete <id> --yes
    """
    api = get_api(ctx)
    client = api.get_client(client_id)
    if client is None:
        fail(f"Client not found: {client_id}")

    owned = api.get_client_projects(client_id)
    if not yes and not click.confirm(
        f"Delete client '{client.name}'? {len(owned)} project(s) will be unassigned"
    ):
        console.print("[yellow]Delete cancelled[/yellow]")
        return

    api.delete_client(client_id)
    console.print(f"[green]✓[/green] Deleted client: {client.name}")
    if owned:
        console.print(f"  Unassigned projects: {', '.join(p.name for p in owned)}")


@clients.command("assign")
@click.argument("client_id")
@click.argument("project_ids", nargs=-1)
@click.pass_context
def clients_assign(ctx: click.Context, client_id: str, project_ids: tuple[str, ...]) -> None:
    """Set exactly which projects belong to a client.

    Projects not listed that currently belong to the client are unassigned.

    Example:
        timeflow clients assign <client-id> <project-id> <project-id>
    """
    try:
        assigned = get_api(ctx).assign_projects(client_id, project_ids)
    except NotFoundError as e:
        fail(str(e))

    console.print(f"[green]✓[/green] Client now has {len(assigned)} project(s)")
    for project in assigned:
        console.print(f"  {project.name}")


# Projects


@click.group()
def projects() -> None:
    """Manage projects."""
    pass


@projects.command("list")
@click.option("-q", "--query", default="", help="Search name, tags or client name")
@click.option(
    "-s",
    "--status",
    type=click.Choice(["active", "archived", "all"]),
    default="all",
    help="Filter by status",
)
@click.option("--page", default=1, type=click.IntRange(min=1), help="Page number")
@click.option("--page-size", type=click.IntRange(min=1), help="Projects per page")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def projects_list(
    ctx: click.Context,
    query: str,
    status: str,
    page: int,
    page_size: Optional[int],
    as_json: bool,
) -> None:
    """List projects.

    Example:
        timeflow projects list --status active -q web
    """
    api = get_api(ctx)
    result = api.list_projects(query, status, page=page, page_size=_page_size(ctx, page_size))

    if as_json:
        _echo_json(result)
        return

    if result.total == 0:
        console.print("[yellow]No projects found[/yellow]")
        return

    client_names = {c.id: c.name for c in api.get_all_clients()}

    table = Table(title="Projects")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Client")
    table.add_column("Status")
    table.add_column("Rate", justify="right")
    table.add_column("Tags")

    for project in result.items:
        status_text = (
            "[green]active[/green]" if project.status.value == "active" else "[dim]archived[/dim]"
        )
        table.add_row(
            project.id,
            project.name,
            client_names.get(project.client_id, "") if project.client_id else "",
            status_text,
            f"{project.rate_per_hour:g}/h" if project.rate_per_hour is not None else "",
            ", ".join(project.tags),
        )

    console.print(table)
    _print_footer(result)


@projects.command("add")
@click.argument("name")
@click.option("-c", "--client", "client_id", help="Owning client ID")
@click.option(
    "-s", "--status", type=click.Choice(["active", "archived"]), default="active", help="Status"
)
@click.option("-r", "--rate", help="Hourly rate")
@click.option("-t", "--tags", help="Comma-separated tags")
@click.option("-n", "--notes", help="Notes")
@click.pass_context
def projects_add(
    ctx: click.Context,
    name: str,
    client_id: Optional[str],
    status: str,
    rate: Optional[str],
    tags: Optional[str],
    notes: Optional[str],
) -> None:
    """Create a project.

    Example:
        timeflow projects add "Website Redesign" -c <client-id> -r 95 -t web,design
    """
    result = validate_project(
        {
            "name": name,
            "client_id": client_id,
            "status": status,
            "rate_per_hour": rate,
            "tags": parse_tags(tags),
            "notes": notes,
        }
    )
    if not result.ok or result.value is None:
        print_validation_errors(result.errors)

    try:
        project = get_api(ctx).create_project(result.value)
    except NotFoundError as e:
        fail(str(e))

    console.print(f"[green]✓[/green] Created project: {project.name}")
    console.print(f"  ID: {project.id}")


@projects.command("edit")
@click.argument("project_id")
@click.option("--name", help="New name")
@click.option("-c", "--client", "client_id", help="New owning client ID")
@click.option("--unassign", is_flag=True, help="Remove the owning client")
@click.option("-s", "--status", type=click.Choice(["active", "archived"]), help="New status")
@click.option("-r", "--rate", help="New hourly rate (empty string clears it)")
@click.option("-t", "--tags", help="Replace tags (comma-separated)")
@click.option("-n", "--notes", help="New notes")
@click.pass_context
def projects_edit(
    ctx: click.Context,
    project_id: str,
    name: Optional[str],
    client_id: Optional[str],
    unassign: bool,
    status: Optional[str],
    rate: Optional[str],
    tags: Optional[str],
    notes: Optional[str],
) -> None:
    """Update a project.

    Example:
        timeflow projects edit <id> --status archived
    """
    if client_id and unassign:
        fail("Use either --client or --unassign, not both")

    api = get_api(ctx)
    existing = api.get_project(project_id)
    if existing is None:
        fail(f"Project not found: {project_id}")

    form = _project_form(existing)
    if name is not None:
        form["name"] = name
    if client_id is not None:
        form["client_id"] = client_id
    if unassign:
        form["client_id"] = None
    if status is not None:
        form["status"] = status
    if rate is not None:
        form["rate_per_hour"] = rate
    if tags is not None:
        form["tags"] = parse_tags(tags)
    if notes is not None:
        form["notes"] = notes

    result = validate_project(form)
    if not result.ok or result.value is None:
        print_validation_errors(result.errors)

    try:
        project = api.update_project(project_id, result.value)
    except NotFoundError as e:
        fail(str(e))

    console.print(f"[green]✓[/green] Updated project: {project.name}")


@projects.command("delete")
@click.argument("project_id")
@click.option("-y", "--yes", is_flag=True, help="Delete without asking")
@click.pass_context
def projects_delete(ctx: click.Context, project_id: str, yes: bool) -> None:
    """Delete a project.

    Example:
        timeflow projects delete <id> --yes
    """
    api = get_api(ctx)
    project = api.get_project(project_id)
    if project is None:
        fail(f"Project not found: {project_id}")

    if not yes and not click.confirm(f"Delete project '{project.name}'?"):
        console.print("[yellow]Delete cancelled[/yellow]")
        return

    api.delete_project(project_id)
    console.print(f"[green]✓[/green] Deleted project: {project.name}")
