"""Timeflow - track working time and organize it by project and client."""

__version__ = "0.1.0"
