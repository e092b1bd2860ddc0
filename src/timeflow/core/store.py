"""Document store for clients and projects with write-through persistence."""

import copy
import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Optional
from uuid import uuid4

from timeflow.core.clock import utc_now
from timeflow.core.errors import NotFoundError, SnapshotError, StoreNotOpenError
from timeflow.core.models import Client, ClientContact, Project, ProjectStatus
from timeflow.core.storage import PersistenceAdapter
from timeflow.core.validation import (
    ValidationResult,
    validate_client_record,
    validate_project_record,
)

logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "timeflow.mockdb.v1"

CLIENT_FIELDS = ("name", "company", "contact", "notes")
PROJECT_FIELDS = ("name", "client_id", "status", "rate_per_hour", "tags", "notes")


def _new_id() -> str:
    return str(uuid4())


def unique_tags(tags: Iterable[str]) -> list[str]:
    """Drop duplicate tags, keeping the first occurrence of each."""
    result: list[str] = []
    for tag in tags:
        if tag not in result:
            result.append(tag)
    return result


def snapshot_document(clients: dict[str, Client], projects: dict[str, Project]) -> dict[str, Any]:
    """Serialize collections to the durable snapshot layout."""
    return {
        "clients": {cid: c.to_dict() for cid, c in clients.items()},
        "projects": {pid: p.to_dict() for pid, p in projects.items()},
    }


def parse_document(document: Any) -> tuple[dict[str, Client], dict[str, Project]]:
    """Deserialize a durable snapshot.

    Args:
        document: Snapshot shaped ``{"clients": {...}, "projects": {...}}``

    Returns:
        Tuple of (clients, projects) keyed by identifier

    Raises:
        SnapshotError: If the document does not have the snapshot shape
    """
    if not isinstance(document, dict):
        raise SnapshotError("Snapshot must be a JSON object")
    raw_clients = document.get("clients")
    raw_projects = document.get("projects")
    if not isinstance(raw_clients, dict) or not isinstance(raw_projects, dict):
        raise SnapshotError("Snapshot must contain 'clients' and 'projects' objects")

    _check_records("client", raw_clients, validate_client_record)
    _check_records("project", raw_projects, validate_project_record)

    clients = {cid: Client.from_dict(data) for cid, data in raw_clients.items()}
    projects = {pid: Project.from_dict(data) for pid, data in raw_projects.items()}
    return clients, projects


def _check_records(
    kind: str, records: dict[str, Any], check: Callable[[Any], ValidationResult]
) -> None:
    for record_id, data in records.items():
        result = check(data)
        if not result.ok:
            problems = "; ".join(
                f"{path or 'record'}: {message}" for path, message in result.errors.items()
            )
            raise SnapshotError(f"Invalid record in snapshot ({kind} {record_id}): {problems}")
        if data["id"] != record_id:
            raise SnapshotError(
                f"Invalid record in snapshot ({kind} {record_id}): id is {data['id']!r}"
            )


class DocumentStore:
    """Keyed collections of clients and projects.

    Every mutation builds the next state on a copy, writes the full
    snapshot through the persistence adapter, and only then replaces the
    in-memory state. A failed write leaves the store unchanged.

    The store does no locking: callers serialize their own writes.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        key: str = SNAPSHOT_KEY,
        id_factory: Callable[[], str] = _new_id,
        now: Callable[[], datetime] = utc_now,
        seed: bool = True,
    ):
        """Initialize the store. Call :meth:`open` before use.

        Args:
            adapter: Durable medium for snapshots
            key: Snapshot key
            id_factory: Generates record identifiers
            now: Wall clock used for createdAt/updatedAt
            seed: Populate sample data when no snapshot exists yet
        """
        self.adapter = adapter
        self.key = key
        self.seed = seed
        self._id_factory = id_factory
        self._now = now
        self._clients: dict[str, Client] = {}
        self._projects: dict[str, Project] = {}
        self._opened = False

    @property
    def is_open(self) -> bool:
        return self._opened

    def open(self) -> "DocumentStore":
        """Load the snapshot, or seed and persist one. Runs once.

        Returns:
            The store itself

        Raises:
            SnapshotError: If the stored snapshot is malformed
        """
        if self._opened:
            return self

        document = self.adapter.load(self.key)
        if document is None:
            clients, projects = self._seed_data() if self.seed else ({}, {})
            self.adapter.save(self.key, snapshot_document(clients, projects))
            logger.info(f"Initialized snapshot '{self.key}' ({len(clients)} clients)")
        else:
            clients, projects = parse_document(document)
            logger.info(
                f"Loaded snapshot '{self.key}' "
                f"({len(clients)} clients, {len(projects)} projects)"
            )

        self._clients, self._projects = clients, projects
        self._opened = True
        return self

    # Reads

    def all_clients(self) -> list[Client]:
        self._require_open()
        return [copy.deepcopy(c) for c in self._clients.values()]

    def all_projects(self) -> list[Project]:
        self._require_open()
        return [copy.deepcopy(p) for p in self._projects.values()]

    def get_client(self, client_id: str) -> Optional[Client]:
        """Get client by ID, or None if not found."""
        self._require_open()
        client = self._clients.get(client_id)
        return copy.deepcopy(client) if client else None

    def get_project(self, project_id: str) -> Optional[Project]:
        """Get project by ID, or None if not found."""
        self._require_open()
        project = self._projects.get(project_id)
        return copy.deepcopy(project) if project else None

    def snapshot(self) -> dict[str, Any]:
        """Current state in the durable snapshot layout."""
        self._require_open()
        return snapshot_document(self._clients, self._projects)

    # Client operations

    def create_client(self, fields: dict[str, Any]) -> Client:
        """Create a client.

        Args:
            fields: name, and optionally company, contact, notes

        Returns:
            The stored client
        """
        self._require_open()
        now = self._now()
        client = Client(id=self._id_factory(), name=fields["name"], created_at=now, updated_at=now)
        self._apply_client_patch(client, fields)

        clients = dict(self._clients)
        clients[client.id] = client
        self._commit(clients, self._projects)
        logger.info(f"Created client {client.id} ({client.name})")
        return copy.deepcopy(client)

    def update_client(self, client_id: str, patch: dict[str, Any]) -> Client:
        """Merge ``patch`` onto a client.

        Args:
            client_id: Client to update
            patch: Fields to change

        Returns:
            The updated client

        Raises:
            NotFoundError: If the client does not exist
        """
        self._require_open()
        existing = self._clients.get(client_id)
        if existing is None:
            raise NotFoundError("client", client_id)

        client = copy.deepcopy(existing)
        self._apply_client_patch(client, patch)
        client.updated_at = self._now()

        clients = dict(self._clients)
        clients[client_id] = client
        self._commit(clients, self._projects)
        logger.info(f"Updated client {client_id}")
        return copy.deepcopy(client)

    def delete_client(self, client_id: str) -> None:
        """Delete a client and unassign every project that referenced it.

        Both changes are written as one snapshot.

        Raises:
            NotFoundError: If the client does not exist
        """
        self._require_open()
        if client_id not in self._clients:
            raise NotFoundError("client", client_id)

        clients = {cid: c for cid, c in self._clients.items() if cid != client_id}
        projects = dict(self._projects)
        now = self._now()
        unassigned = 0
        for pid, project in self._projects.items():
            if project.client_id == client_id:
                updated = copy.deepcopy(project)
                updated.client_id = None
                updated.updated_at = now
                projects[pid] = updated
                unassigned += 1

        self._commit(clients, projects)
        logger.info(f"Deleted client {client_id} (unassigned {unassigned} projects)")

    def assign_projects(self, client_id: str, project_ids: Iterable[str]) -> list[Project]:
        """Make ``project_ids`` exactly the set of projects owned by a client.

        Projects previously owned by the client and not listed are
        unassigned. Listed projects owned by another client move over.

        Args:
            client_id: Owning client
            project_ids: Projects the client should own

        Returns:
            Projects owned by the client afterwards

        Raises:
            NotFoundError: If the client or any listed project does not exist
        """
        self._require_open()
        if client_id not in self._clients:
            raise NotFoundError("client", client_id)
        wanted = set(project_ids)
        for pid in wanted:
            if pid not in self._projects:
                raise NotFoundError("project", pid)

        projects = dict(self._projects)
        now = self._now()
        for pid, project in self._projects.items():
            if pid in wanted and project.client_id != client_id:
                target: Optional[str] = client_id
            elif pid not in wanted and project.client_id == client_id:
                target = None
            else:
                continue
            updated = copy.deepcopy(project)
            updated.client_id = target
            updated.updated_at = now
            projects[pid] = updated

        self._commit(self._clients, projects)
        logger.info(f"Assigned {len(wanted)} projects to client {client_id}")
        return [copy.deepcopy(p) for p in projects.values() if p.client_id == client_id]

    # Project operations

    def create_project(self, fields: dict[str, Any]) -> Project:
        """Create a project.

        Args:
            fields: name, and optionally client_id, status, rate_per_hour, tags, notes

        Returns:
            The stored project

        Raises:
            NotFoundError: If client_id names a client that does not exist
        """
        self._require_open()
        now = self._now()
        project = Project(id=self._id_factory(), name=fields["name"], created_at=now, updated_at=now)
        self._apply_project_patch(project, fields)

        projects = dict(self._projects)
        projects[project.id] = project
        self._commit(self._clients, projects)
        logger.info(f"Created project {project.id} ({project.name})")
        return copy.deepcopy(project)

    def update_project(self, project_id: str, patch: dict[str, Any]) -> Project:
        """Merge ``patch`` onto a project.

        Raises:
            NotFoundError: If the project, or a newly referenced client, does not exist
        """
        self._require_open()
        existing = self._projects.get(project_id)
        if existing is None:
            raise NotFoundError("project", project_id)

        project = copy.deepcopy(existing)
        self._apply_project_patch(project, patch)
        project.updated_at = self._now()

        projects = dict(self._projects)
        projects[project_id] = project
        self._commit(self._clients, projects)
        logger.info(f"Updated project {project_id}")
        return copy.deepcopy(project)

    def delete_project(self, project_id: str) -> None:
        """Delete a project. Nothing references projects, so nothing cascades.

        Raises:
            NotFoundError: If the project does not exist
        """
        self._require_open()
        if project_id not in self._projects:
            raise NotFoundError("project", project_id)

        projects = {pid: p for pid, p in self._projects.items() if pid != project_id}
        self._commit(self._clients, projects)
        logger.info(f"Deleted project {project_id}")

    def replace(self, document: dict[str, Any]) -> None:
        """Replace the whole store with an imported snapshot.

        Raises:
            SnapshotError: If the document is malformed or a project
                references a client missing from the document
        """
        self._require_open()
        clients, projects = parse_document(document)
        for project in projects.values():
            if project.client_id is not None and project.client_id not in clients:
                raise SnapshotError(
                    f"Project {project.id} references unknown client {project.client_id}"
                )
        self._commit(clients, projects)
        logger.info(f"Replaced store ({len(clients)} clients, {len(projects)} projects)")

    # Internals

    def _require_open(self) -> None:
        if not self._opened:
            raise StoreNotOpenError()

    def _commit(self, clients: dict[str, Client], projects: dict[str, Project]) -> None:
        self.adapter.save(self.key, snapshot_document(clients, projects))
        self._clients, self._projects = clients, projects

    def _apply_client_patch(self, client: Client, patch: dict[str, Any]) -> None:
        for key, value in patch.items():
            if key not in CLIENT_FIELDS:
                if key not in ("id", "created_at", "updated_at"):
                    logger.warning(f"Unknown client field: {key}")
                continue
            if key == "contact":
                if isinstance(value, ClientContact):
                    value = copy.copy(value)
                else:
                    value = ClientContact.from_dict(value)
            setattr(client, key, value)

    def _apply_project_patch(self, project: Project, patch: dict[str, Any]) -> None:
        for key, value in patch.items():
            if key not in PROJECT_FIELDS:
                if key not in ("id", "created_at", "updated_at"):
                    logger.warning(f"Unknown project field: {key}")
                continue
            if key == "client_id" and value is not None and value not in self._clients:
                raise NotFoundError("client", value)
            if key == "status":
                value = ProjectStatus(value)
            elif key == "rate_per_hour" and value is not None:
                value = float(value)
            elif key == "tags":
                value = unique_tags(value or [])
            setattr(project, key, value)

    def _seed_data(self) -> tuple[dict[str, Client], dict[str, Project]]:
        now = self._now()
        acme = Client(
            id=self._id_factory(),
            name="Acme Corp",
            company="Acme Corp",
            contact=ClientContact(
                email="hello@acme.com", phone="+1 555 000", website="https://acme.com"
            ),
            notes="VIP client",
            created_at=now,
            updated_at=now,
        )
        globex = Client(
            id=self._id_factory(),
            name="Globex",
            company="Globex LLC",
            contact=ClientContact(email="info@globex.io"),
            created_at=now,
            updated_at=now,
        )
        projects = [
            Project(
                id=self._id_factory(),
                name="Website Redesign",
                client_id=acme.id,
                rate_per_hour=95.0,
                tags=["web", "design"],
                notes="Priority Q3",
                created_at=now,
                updated_at=now,
            ),
            Project(
                id=self._id_factory(),
                name="Mobile App",
                client_id=acme.id,
                rate_per_hour=120.0,
                tags=["mobile"],
                created_at=now,
                updated_at=now,
            ),
            Project(
                id=self._id_factory(),
                name="Consulting Retainer",
                client_id=globex.id,
                status=ProjectStatus.ARCHIVED,
                tags=["consulting"],
                created_at=now,
                updated_at=now,
            ),
        ]
        return {acme.id: acme, globex.id: globex}, {p.id: p for p in projects}
