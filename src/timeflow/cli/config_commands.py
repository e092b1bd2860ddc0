"""CLI commands for configuration management."""

import json
import shutil
from typing import Any

import click
from rich.table import Table

from timeflow.cli.common import console, fail, get_config


def convert_value(value: str) -> Any:
    """Convert a command-line string to a bool, None, int or str."""
    lowered = value.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False
    if lowered == "null":
        return None
    try:
        return int(value)
    except ValueError:
        return value


@click.group()
def config() -> None:
    """Manage Timeflow configuration.

    Configuration is stored in ~/.timeflow/config.yml
    """
    pass


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show all configuration settings.

    Example:
        timeflow config show --json
    """
    config_mgr = get_config(ctx)

    if as_json:
        click.echo(json.dumps(config_mgr.to_dict(), indent=2))
        return

    table = Table(title="Timeflow Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key in config_mgr.get_all_keys():
        table.add_row(key, str(config_mgr.get(key)))

    console.print(table)
    console.print(f"\nConfig file: {config_mgr.config_path}")


@config.command("get")
@click.argument("key")
@click.pass_context
def config_get(ctx: click.Context, key: str) -> None:
    """Get a configuration value using dot notation.

    Example:
        timeflow config get timer.frame_rate
    """
    value = get_config(ctx).get(key)

    if value is None:
        fail(f"Configuration key '{key}' not found")

    if isinstance(value, dict):
        click.echo(json.dumps(value, indent=2))
    else:
        click.echo(str(value))


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a configuration value.

    Use 'true'/'false' for booleans and plain numbers for integers.

    Example:
        timeflow config set api.latency_ms 200
    """
    converted_value = convert_value(value)

    try:
        get_config(ctx).set(key, converted_value)
    except ValueError as e:
        fail(str(e))

    console.print(f"[green]✓[/green] Set {key} = {converted_value}")


@config.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Reset configuration to defaults.

    Example:
        timeflow config reset --yes
    """
    config_mgr = get_config(ctx)

    if not yes:
        console.print("[yellow]Warning:[/yellow] This will reset all configuration to defaults.")
        if not click.confirm("Continue?"):
            console.print("Cancelled")
            return

    backup_path = config_mgr.backup_path
    if config_mgr.config_path.exists():
        shutil.copy(config_mgr.config_path, backup_path)
        console.print(f"Backed up current config to {backup_path}")

    config_mgr.reset()
    console.print("[green]✓[/green] Configuration reset to defaults")


@config.command("path")
@click.pass_context
def config_path(ctx: click.Context) -> None:
    """Show path to configuration file."""
    click.echo(str(get_config(ctx).config_path))
