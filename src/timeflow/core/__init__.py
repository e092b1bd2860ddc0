"""Core functionality for time tracking and the client/project store."""

from timeflow.core.api import TimeflowAPI
from timeflow.core.models import Client, ClientContact, Lap, PagedResult, Pagination, Project
from timeflow.core.session import TimerSession
from timeflow.core.store import DocumentStore
from timeflow.core.timer import TimerEngine

__all__ = [
    "Client",
    "ClientContact",
    "DocumentStore",
    "Lap",
    "PagedResult",
    "Pagination",
    "Project",
    "TimeflowAPI",
    "TimerEngine",
    "TimerSession",
]
