"""API facade used by front ends to query and mutate the store."""

import logging
import time
from typing import Any, Callable, Iterable, Optional

from timeflow.core import query
from timeflow.core.models import Client, PagedResult, Pagination, Project
from timeflow.core.store import DocumentStore

logger = logging.getLogger(__name__)


class TimeflowAPI:
    """Client/project operations with paginated listings.

    An optional latency simulation delays every call to emulate a remote
    service during development. It never fails and does not reorder calls.
    """

    def __init__(
        self,
        store: DocumentStore,
        latency_ms: int = 0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the facade.

        Args:
            store: Document store (opened on first use if needed)
            latency_ms: Simulated delay per call in milliseconds
            sleep: Sleep function, injectable for tests
        """
        self.store = store
        self.latency_ms = latency_ms
        self._sleep = sleep

    def _ready(self) -> DocumentStore:
        if not self.store.is_open:
            self.store.open()
        return self.store

    def _simulate(self) -> None:
        if self.latency_ms > 0:
            self._sleep(self.latency_ms / 1000)

    def list_clients(self, query_text: str = "", page: int = 1, page_size: int = 10) -> PagedResult[Client]:
        """Search clients by name, company, email or phone.

        Raises:
            ValueError: If page or page_size is less than 1
        """
        pagination = Pagination(page=page, page_size=page_size)
        result = query.list_clients(self._ready().all_clients(), query_text, pagination)
        self._simulate()
        return result

    def list_projects(
        self,
        query_text: str = "",
        status: str = "all",
        page: int = 1,
        page_size: int = 10,
    ) -> PagedResult[Project]:
        """Filter projects by status and search by name, tags or client name.

        Raises:
            ValueError: If page, page_size or status is invalid
        """
        pagination = Pagination(page=page, page_size=page_size)
        store = self._ready()
        result = query.list_projects(
            store.all_projects(), store.all_clients(), query_text, status, pagination
        )
        self._simulate()
        return result

    def get_all_clients(self) -> list[Client]:
        clients = self._ready().all_clients()
        self._simulate()
        return clients

    def get_client(self, client_id: str) -> Optional[Client]:
        client = self._ready().get_client(client_id)
        self._simulate()
        return client

    def get_project(self, project_id: str) -> Optional[Project]:
        project = self._ready().get_project(project_id)
        self._simulate()
        return project

    def get_client_projects(self, client_id: str) -> list[Project]:
        """Projects currently assigned to a client."""
        projects = [p for p in self._ready().all_projects() if p.client_id == client_id]
        self._simulate()
        return projects

    def create_client(self, fields: dict[str, Any]) -> Client:
        client = self._ready().create_client(fields)
        self._simulate()
        return client

    def update_client(self, client_id: str, patch: dict[str, Any]) -> Client:
        client = self._ready().update_client(client_id, patch)
        self._simulate()
        return client

    def delete_client(self, client_id: str) -> None:
        self._ready().delete_client(client_id)
        self._simulate()

    def assign_projects(self, client_id: str, project_ids: Iterable[str]) -> list[Project]:
        projects = self._ready().assign_projects(client_id, project_ids)
        self._simulate()
        return projects

    def create_project(self, fields: dict[str, Any]) -> Project:
        project = self._ready().create_project(fields)
        self._simulate()
        return project

    def update_project(self, project_id: str, patch: dict[str, Any]) -> Project:
        project = self._ready().update_project(project_id, patch)
        self._simulate()
        return project

    def delete_project(self, project_id: str) -> None:
        self._ready().delete_project(project_id)
        self._simulate()

    def snapshot(self) -> dict[str, Any]:
        """Everything in the store, in the durable snapshot layout."""
        document = self._ready().snapshot()
        self._simulate()
        return document

    def replace(self, document: dict[str, Any]) -> None:
        """Replace every client and project with an imported snapshot.

        Raises:
            SnapshotError: If the snapshot is malformed
        """
        self._ready().replace(document)
        self._simulate()
