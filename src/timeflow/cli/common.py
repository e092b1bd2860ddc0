"""Shared helpers for CLI commands."""

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from timeflow.core.api import TimeflowAPI
from timeflow.core.config import ConfigManager
from timeflow.core.errors import TimeflowError
from timeflow.core.storage import JSONFileAdapter
from timeflow.core.store import SNAPSHOT_KEY, DocumentStore

console = Console()
error_console = Console(stderr=True)


def setup_logging(level: str) -> None:
    """Route ``timeflow`` log records to stderr at ``level``."""
    package_logger = logging.getLogger("timeflow")
    package_logger.setLevel(getattr(logging, level, logging.WARNING))
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        handler = RichHandler(console=error_console, show_path=False)
        handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
        package_logger.addHandler(handler)


def get_config(ctx: click.Context) -> ConfigManager:
    """Get the ConfigManager for this invocation (created once)."""
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        config_path = obj.get("config_path")
        obj["config"] = ConfigManager(Path(config_path) if config_path else None)
    config: ConfigManager = obj["config"]
    return config


def get_api(ctx: click.Context) -> TimeflowAPI:
    """Get a TimeflowAPI backed by the JSON file store in the data directory.

    The store is opened here so a corrupt snapshot is reported as a CLI error.
    """
    obj = ctx.ensure_object(dict)
    if "api" not in obj:
        config = get_config(ctx)
        data_dir = obj.get("data_dir")
        adapter = JSONFileAdapter(Path(data_dir) if data_dir else config.data_dir)
        store = DocumentStore(
            adapter,
            key=config.get("storage.snapshot_key", SNAPSHOT_KEY),
            seed=config.get("storage.seed_on_first_open", True),
        )
        try:
            store.open()
        except TimeflowError as e:
            fail(str(e))
        obj["api"] = TimeflowAPI(store, latency_ms=config.get("api.latency_ms", 0))
    api: TimeflowAPI = obj["api"]
    return api


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    error_console.print(f"[red]Error:[/red] {escape(message)}", soft_wrap=True)
    sys.exit(1)


def print_validation_errors(errors: dict[str, str]) -> NoReturn:
    """Print field errors from a failed validation and exit with status 1."""
    error_console.print("[red]Error:[/red] Invalid input")
    for path, message in errors.items():
        error_console.print(f"  {path}: {escape(message)}")
    sys.exit(1)
