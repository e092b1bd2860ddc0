"""Command-line interface for Timeflow."""

from timeflow.cli.main import cli

__all__ = ["cli"]
