"""Main CLI application."""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import click

from timeflow import __version__
from timeflow.cli.common import console, fail, get_api, get_config, setup_logging
from timeflow.cli.config_commands import config
from timeflow.cli.entity_commands import clients, projects
from timeflow.cli.timer_commands import timer
from timeflow.core.errors import SnapshotError

EXPORT_FORMAT_VERSION = "1.0"


@click.group()
@click.version_option(version=__version__)
@click.option("--data-dir", help="Custom data directory", type=click.Path())
@click.option("--config", "config_path", help="Custom config file", type=click.Path())
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(
    ctx: click.Context, data_dir: Optional[str], config_path: Optional[str], no_color: bool
) -> None:
    """Timeflow - track working time and organize it by project and client.

    Manage clients and projects, or run the live timer.
    """
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir
    ctx.obj["config_path"] = config_path

    if no_color:
        console.no_color = True

    try:
        setup_logging(get_config(ctx).get("advanced.log_level", "WARNING"))
    except ValueError as e:
        fail(str(e))


@cli.command("export")
@click.argument("output", type=click.Path(dir_okay=False))
@click.pass_context
def export_snapshot(ctx: click.Context, output: str) -> None:
    """Export all clients and projects to a JSON file.

    Example:
        timeflow export backup.json
    """
    api = get_api(ctx)
    snapshot = api.snapshot()
    data = {
        "snapshot": snapshot,
        "metadata": {
            "export_date": datetime.now().isoformat(),
            "client_count": len(snapshot["clients"]),
            "project_count": len(snapshot["projects"]),
            "snapshot_key": api.store.key,
            "format_version": EXPORT_FORMAT_VERSION,
        },
    }

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    console.print(
        f"[green]✓[/green] Exported {len(snapshot['clients'])} clients and "
        f"{len(snapshot['projects'])} projects to {output_path}"
    )


@cli.command("import")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-y", "--yes", is_flag=True, help="Replace existing data without asking")
@click.pass_context
def import_snapshot(ctx: click.Context, input_file: str, yes: bool) -> None:
    """Replace all clients and projects with the contents of a JSON export.

    Example:
        timeflow import backup.json --yes
    """
    try:
        with open(input_file, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        fail(f"Invalid JSON file: {e}")

    # Accept both the export wrapper and a bare snapshot
    document = data.get("snapshot", data) if isinstance(data, dict) else data

    if not yes and not click.confirm("Replace all existing clients and projects?"):
        console.print("[yellow]Import cancelled[/yellow]")
        return

    api = get_api(ctx)
    try:
        api.replace(document)
    except SnapshotError as e:
        fail(str(e))

    snapshot = api.snapshot()
    console.print(
        f"[green]✓[/green] Imported {len(snapshot['clients'])} clients and "
        f"{len(snapshot['projects'])} projects"
    )


cli.add_command(clients)
cli.add_command(projects)
cli.add_command(timer)
cli.add_command(config)


if __name__ == "__main__":
    cli(obj={})
