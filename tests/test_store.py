"""Tests for the document store."""

from typing import Any, Optional

import pytest

from timeflow.core.errors import NotFoundError, SnapshotError, StoreNotOpenError
from timeflow.core.models import ProjectStatus
from timeflow.core.storage import MemoryAdapter
from timeflow.core.store import SNAPSHOT_KEY, DocumentStore, parse_document

from fakes import FakeWallClock, sequential_ids


class FailingAdapter(MemoryAdapter):
    """Memory adapter that can be told to reject writes."""

    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    def save(self, key: str, document: dict[str, Any]) -> None:
        if self.fail:
            raise OSError("disk full")
        super().save(key, document)


def _store(adapter: MemoryAdapter, seed: bool = False) -> DocumentStore:
    return DocumentStore(adapter, id_factory=sequential_ids(), now=FakeWallClock(), seed=seed)


class TestOpen:
    """Test opening, seeding and loading."""

    def test_use_before_open(self, adapter: MemoryAdapter) -> None:
        store = _store(adapter)
        with pytest.raises(StoreNotOpenError):
            store.all_clients()

    def test_open_seeds_and_persists(self, adapter: MemoryAdapter) -> None:
        """Test an empty medium is seeded with sample data and written once."""
        store = _store(adapter, seed=True).open()

        names = sorted(c.name for c in store.all_clients())
        assert names == ["Acme Corp", "Globex"]
        assert len(store.all_projects()) == 3
        assert adapter.save_count == 1
        assert adapter.load(SNAPSHOT_KEY) == store.snapshot()

    def test_seeded_projects_reference_seeded_clients(self, adapter: MemoryAdapter) -> None:
        store = _store(adapter, seed=True).open()
        client_ids = {c.id for c in store.all_clients()}

        for project in store.all_projects():
            assert project.client_id in client_ids

        statuses = sorted(p.status.value for p in store.all_projects())
        assert statuses == ["active", "active", "archived"]

    def test_open_without_seed_is_empty(self, store: DocumentStore) -> None:
        assert store.all_clients() == []
        assert store.all_projects() == []

    def test_open_loads_existing_snapshot(self, adapter: MemoryAdapter) -> None:
        """Test reopening reads back what was written."""
        first = _store(adapter).open()
        client = first.create_client({"name": "Initech"})

        second = DocumentStore(adapter, seed=True).open()
        loaded = second.get_client(client.id)

        assert loaded is not None
        assert loaded.name == "Initech"
        assert len(second.all_clients()) == 1

    def test_open_is_idempotent(self, adapter: MemoryAdapter) -> None:
        store = _store(adapter).open()
        store.open()
        assert adapter.save_count == 1

    def test_open_rejects_malformed_snapshot(self, adapter: MemoryAdapter) -> None:
        adapter.save(SNAPSHOT_KEY, {"clients": []})
        with pytest.raises(SnapshotError):
            _store(adapter).open()


class TestClients:
    """Test client operations."""

    def test_create_client(self, store: DocumentStore) -> None:
        client = store.create_client(
            {"name": "Initech", "company": "Initech Inc", "contact": {"email": "a@b.co"}}
        )

        assert client.id == "id-1"
        assert client.contact.email == "a@b.co"
        assert client.created_at == client.updated_at
        assert store.get_client("id-1") == client

    def test_update_client_merges_patch(self, store: DocumentStore) -> None:
        client = store.create_client({"name": "Initech", "notes": "keep"})
        updated = store.update_client(client.id, {"name": "Initrode"})

        assert updated.name == "Initrode"
        assert updated.notes == "keep"
        assert updated.created_at == client.created_at
        assert updated.updated_at > client.updated_at

    def test_update_ignores_unknown_fields(self, store: DocumentStore) -> None:
        client = store.create_client({"name": "Initech"})
        updated = store.update_client(client.id, {"color": "red", "id": "other"})

        assert updated.id == client.id
        assert not hasattr(updated, "color")

    def test_update_missing_client(self, store: DocumentStore) -> None:
        with pytest.raises(NotFoundError, match="Client not found: nope"):
            store.update_client("nope", {"name": "X"})

    def test_delete_missing_client(self, store: DocumentStore) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            store.delete_client("nope")
        assert exc_info.value.kind == "client"
        assert exc_info.value.record_id == "nope"

    @pytest.mark.parametrize("owned", [0, 1, 4])
    def test_delete_client_unassigns_projects(self, store: DocumentStore, owned: int) -> None:
        """Test deleting a client clears clientId on every project it owned."""
        client = store.create_client({"name": "Initech"})
        other = store.create_client({"name": "Globex"})
        mine = [store.create_project({"name": f"P{i}x", "client_id": client.id}) for i in range(owned)]
        theirs = store.create_project({"name": "Other", "client_id": other.id})

        store.delete_client(client.id)

        assert store.get_client(client.id) is None
        assert len(store.all_projects()) == owned + 1
        for project in mine:
            after = store.get_project(project.id)
            assert after is not None
            assert after.client_id is None
            assert after.updated_at > project.updated_at
        kept = store.get_project(theirs.id)
        assert kept is not None
        assert kept.client_id == other.id

    def test_delete_client_writes_once(self, store: DocumentStore, adapter: MemoryAdapter) -> None:
        client = store.create_client({"name": "Initech"})
        store.create_project({"name": "Site", "client_id": client.id})
        before = adapter.save_count

        store.delete_client(client.id)

        assert adapter.save_count == before + 1
        document = adapter.load(SNAPSHOT_KEY)
        assert document is not None
        assert document["clients"] == {}
        assert all(p["clientId"] is None for p in document["projects"].values())

    def test_reads_are_copies(self, store: DocumentStore) -> None:
        """Test mutating a returned record does not change the store."""
        client = store.create_client({"name": "Initech"})
        fetched = store.get_client(client.id)
        assert fetched is not None
        fetched.name = "Changed"
        fetched.contact.email = "x@y.zz"

        again = store.get_client(client.id)
        assert again is not None
        assert again.name == "Initech"
        assert again.contact.email is None


class TestAssignProjects:
    """Test bulk assignment of projects to a client."""

    def test_assign_makes_exact_set(self, store: DocumentStore) -> None:
        client = store.create_client({"name": "Initech"})
        other = store.create_client({"name": "Globex"})
        a = store.create_project({"name": "Alpha", "client_id": client.id})
        b = store.create_project({"name": "Beta", "client_id": other.id})
        c = store.create_project({"name": "Gamma"})

        owned = store.assign_projects(client.id, [b.id, c.id])

        assert sorted(p.id for p in owned) == sorted([b.id, c.id])
        assert store.get_project(a.id).client_id is None  # type: ignore[union-attr]
        assert store.get_project(b.id).client_id == client.id  # type: ignore[union-attr]
        assert store.get_project(c.id).client_id == client.id  # type: ignore[union-attr]

    def test_assign_empty_unassigns_all(self, store: DocumentStore) -> None:
        client = store.create_client({"name": "Initech"})
        project = store.create_project({"name": "Alpha", "client_id": client.id})

        assert store.assign_projects(client.id, []) == []
        assert store.get_project(project.id).client_id is None  # type: ignore[union-attr]

    def test_assign_unknown_project_changes_nothing(self, store: DocumentStore) -> None:
        client = store.create_client({"name": "Initech"})
        project = store.create_project({"name": "Alpha"})
        before = store.snapshot()

        with pytest.raises(NotFoundError):
            store.assign_projects(client.id, [project.id, "missing"])

        assert store.snapshot() == before

    def test_assign_unknown_client(self, store: DocumentStore) -> None:
        with pytest.raises(NotFoundError):
            store.assign_projects("missing", [])


class TestProjects:
    """Test project operations."""

    def test_create_project_defaults(self, store: DocumentStore) -> None:
        project = store.create_project({"name": "Alpha"})

        assert project.status is ProjectStatus.ACTIVE
        assert project.client_id is None
        assert project.tags == []
        assert project.rate_per_hour is None

    def test_create_project_normalizes_fields(self, store: DocumentStore) -> None:
        project = store.create_project(
            {"name": "Alpha", "status": "archived", "rate_per_hour": 50, "tags": ["a", "b", "a"]}
        )

        assert project.status is ProjectStatus.ARCHIVED
        assert project.rate_per_hour == 50.0
        assert project.tags == ["a", "b"]

    def test_create_project_with_unknown_client(self, store: DocumentStore) -> None:
        with pytest.raises(NotFoundError, match="Client not found"):
            store.create_project({"name": "Alpha", "client_id": "ghost"})
        assert store.all_projects() == []

    def test_update_project(self, store: DocumentStore) -> None:
        client = store.create_client({"name": "Initech"})
        project = store.create_project({"name": "Alpha"})

        updated = store.update_project(project.id, {"client_id": client.id, "status": "archived"})
        assert updated.client_id == client.id
        assert updated.status is ProjectStatus.ARCHIVED

        cleared = store.update_project(project.id, {"client_id": None})
        assert cleared.client_id is None

    def test_update_missing_project(self, store: DocumentStore) -> None:
        with pytest.raises(NotFoundError, match="Project not found: nope"):
            store.update_project("nope", {"name": "X"})

    def test_delete_project(self, store: DocumentStore) -> None:
        project = store.create_project({"name": "Alpha"})
        store.delete_project(project.id)

        assert store.get_project(project.id) is None
        with pytest.raises(NotFoundError):
            store.delete_project(project.id)


class TestAtomicity:
    """Test a failed write leaves the store unchanged."""

    @pytest.mark.parametrize(
        "operation",
        ["create_client", "update_client", "delete_client", "create_project", "assign"],
    )
    def test_failed_write_keeps_state(self, operation: str) -> None:
        adapter = FailingAdapter()
        store = _store(adapter).open()
        client = store.create_client({"name": "Initech"})
        store.create_project({"name": "Alpha", "client_id": client.id})
        before = store.snapshot()
        persisted = adapter.load(SNAPSHOT_KEY)

        adapter.fail = True
        with pytest.raises(OSError):
            if operation == "create_client":
                store.create_client({"name": "Globex"})
            elif operation == "update_client":
                store.update_client(client.id, {"name": "Changed"})
            elif operation == "delete_client":
                store.delete_client(client.id)
            elif operation == "create_project":
                store.create_project({"name": "Beta"})
            else:
                store.assign_projects(client.id, [])

        assert store.snapshot() == before
        assert adapter.load(SNAPSHOT_KEY) == persisted


class TestReplace:
    """Test replacing the store with an imported snapshot."""

    def test_replace(self, store: DocumentStore, adapter: MemoryAdapter) -> None:
        source = _store(MemoryAdapter(), seed=True).open()
        document = source.snapshot()

        store.replace(document)

        assert store.snapshot() == document
        assert adapter.load(SNAPSHOT_KEY) == document

    def test_replace_rejects_dangling_reference(self, store: DocumentStore) -> None:
        source = _store(MemoryAdapter(), seed=True).open()
        document = source.snapshot()
        document["clients"] = {}

        with pytest.raises(SnapshotError, match="unknown client"):
            store.replace(document)
        assert store.all_projects() == []


class TestParseDocument:
    """Test snapshot parsing."""

    @pytest.mark.parametrize(
        "document",
        [None, [], {"clients": {}}, {"clients": {}, "projects": []}],
    )
    def test_wrong_shape(self, document: Optional[Any]) -> None:
        with pytest.raises(SnapshotError):
            parse_document(document)

    def test_bad_record(self) -> None:
        with pytest.raises(SnapshotError, match="Invalid record"):
            parse_document({"clients": {"c1": {"id": "c1"}}, "projects": {}})

    def test_record_key_must_match_id(self) -> None:
        document = _document(clients={"c1": _client_record("other")})

        with pytest.raises(SnapshotError, match="id is 'other'"):
            parse_document(document)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("name", 123),
            ("name", None),
            ("contact", "x"),
            ("contact", {"email": 5}),
            ("company", ["Acme"]),
            ("createdAt", "yesterday"),
            ("updatedAt", 1735722000),
        ],
    )
    def test_client_field_types(self, field: str, value: Any) -> None:
        """Test a client record with a wrongly typed field is rejected."""
        record = _client_record("c1")
        record[field] = value

        with pytest.raises(SnapshotError, match=r"\(client c1\)"):
            parse_document(_document(clients={"c1": record}))

    @pytest.mark.parametrize(
        "field,value",
        [
            ("tags", "web"),
            ("tags", ["web", 1]),
            ("status", "deleted"),
            ("ratePerHour", "95"),
            ("ratePerHour", -1),
            ("ratePerHour", float("nan")),
            ("ratePerHour", float("inf")),
            ("clientId", 7),
        ],
    )
    def test_project_field_types(self, field: str, value: Any) -> None:
        """Test a project record with a wrongly typed field is rejected."""
        record = _project_record("p1")
        record[field] = value

        with pytest.raises(SnapshotError, match=r"\(project p1\)"):
            parse_document(_document(projects={"p1": record}))

    def test_record_that_is_not_an_object(self) -> None:
        with pytest.raises(SnapshotError):
            parse_document(_document(clients={"c1": "Acme"}))

    def test_integer_rate_accepted(self) -> None:
        record = _project_record("p1")
        record["ratePerHour"] = 95

        _, projects = parse_document(_document(projects={"p1": record}))

        assert projects["p1"].rate_per_hour == 95.0

    def test_replace_with_bad_record_keeps_store(self, store: DocumentStore) -> None:
        """Test a rejected import leaves existing data searchable."""
        store.create_client({"name": "Initech"})
        before = store.snapshot()
        record = _client_record("c1")
        record["name"] = 123

        with pytest.raises(SnapshotError):
            store.replace(_document(clients={"c1": record}))

        assert store.snapshot() == before
        assert [c.name for c in store.all_clients()] == ["Initech"]


def _client_record(record_id: str) -> dict[str, Any]:
    return {
        "id": record_id,
        "name": "Acme Corp",
        "contact": {"email": "hello@acme.com"},
        "createdAt": "2025-01-01T09:00:00+00:00",
        "updatedAt": "2025-01-01T09:00:00+00:00",
    }


def _project_record(record_id: str) -> dict[str, Any]:
    return {
        "id": record_id,
        "name": "Website Redesign",
        "clientId": None,
        "status": "active",
        "tags": ["web"],
        "ratePerHour": 95.0,
        "createdAt": "2025-01-01T09:00:00+00:00",
        "updatedAt": "2025-01-01T09:00:00+00:00",
    }


def _document(
    clients: Optional[dict[str, Any]] = None, projects: Optional[dict[str, Any]] = None
) -> dict[str, Any]:
    return {"clients": clients or {}, "projects": projects or {}}
