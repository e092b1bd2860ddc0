"""Core data models for time tracking and the client/project store."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class TimerPhase(str, Enum):
    """Phase of the timer state machine."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class ProjectStatus(str, Enum):
    """Lifecycle status of a project."""

    ACTIVE = "active"
    ARCHIVED = "archived"


STATUS_FILTERS = ("active", "archived", "all")


@dataclass(frozen=True)
class Lap:
    """User-marked checkpoint within a timer session.

    Attributes:
        id: Unique identifier
        at_ms: Cumulative elapsed milliseconds when the lap was taken
        delta_ms: Milliseconds since the previous lap (or since zero)
        note: Optional free-text note
    """

    id: str
    at_ms: int
    delta_ms: int
    note: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        data: dict[str, Any] = {"id": self.id, "atMs": self.at_ms, "deltaMs": self.delta_ms}
        if self.note is not None:
            data["note"] = self.note
        return data


@dataclass(frozen=True)
class TimerState:
    """Read-only snapshot of the timer engine.

    Attributes:
        phase: Current phase
        accumulated_ms: Time banked from completed run segments
        start_ts: Monotonic timestamp of the running segment (None unless running)
        laps: Laps taken since the last reset
    """

    phase: TimerPhase = TimerPhase.IDLE
    accumulated_ms: int = 0
    start_ts: Optional[float] = None
    laps: tuple[Lap, ...] = ()


@dataclass
class ClientContact:
    """Contact details of a client. Every field is optional."""

    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, omitting unset fields."""
        return {
            key: value
            for key, value in (
                ("email", self.email),
                ("phone", self.phone),
                ("website", self.website),
            )
            if value is not None
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "ClientContact":
        """Create ClientContact from dictionary."""
        data = data or {}
        return cls(
            email=data.get("email"),
            phone=data.get("phone"),
            website=data.get("website"),
        )


@dataclass
class Client:
    """Client that projects can be assigned to.

    Attributes:
        id: Unique identifier
        name: Display name
        company: Company name (optional)
        contact: Contact details
        notes: Free-text notes (optional)
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    company: Optional[str] = None
    contact: ClientContact = field(default_factory=ClientContact)
    notes: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the JSON snapshot."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "contact": self.contact.to_dict(),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
        if self.company is not None:
            data["company"] = self.company
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Client":
        """Create Client from dictionary (JSON snapshot deserialization)."""
        return cls(
            id=data["id"],
            name=data["name"],
            company=data.get("company"),
            contact=ClientContact.from_dict(data.get("contact")),
            notes=data.get("notes"),
            created_at=datetime.fromisoformat(data["createdAt"]),
            updated_at=datetime.fromisoformat(data["updatedAt"]),
        )


@dataclass
class Project:
    """Project definition for organizing tracked work.

    Attributes:
        id: Unique identifier
        name: Display name
        client_id: Owning client identifier, or None when unassigned
        status: Active or archived
        rate_per_hour: Hourly rate (optional, non-negative)
        tags: Unique tags in insertion order
        notes: Free-text notes (optional)
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    client_id: Optional[str] = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    rate_per_hour: Optional[float] = None
    tags: list[str] = field(default_factory=list)
    notes: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the JSON snapshot."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "clientId": self.client_id,
            "status": self.status.value,
            "tags": list(self.tags),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
        if self.rate_per_hour is not None:
            data["ratePerHour"] = self.rate_per_hour
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        """Create Project from dictionary (JSON snapshot deserialization)."""
        rate = data.get("ratePerHour")
        return cls(
            id=data["id"],
            name=data["name"],
            client_id=data.get("clientId"),
            status=ProjectStatus(data.get("status", "active")),
            rate_per_hour=float(rate) if rate is not None else None,
            tags=list(data.get("tags") or []),
            notes=data.get("notes"),
            created_at=datetime.fromisoformat(data["createdAt"]),
            updated_at=datetime.fromisoformat(data["updatedAt"]),
        )


@dataclass(frozen=True)
class Pagination:
    """Page request. ``page`` is 1-indexed.

    Raises:
        ValueError: If page or page_size is less than 1
    """

    page: int = 1
    page_size: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")

    @property
    def offset(self) -> int:
        """Index of the first item on this page."""
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    """Filtered, sliced view of a collection plus the pre-slice total.

    Attributes:
        items: Page-sized slice of the filtered result
        total: Number of matching records before pagination
        page: Requested page (1-indexed)
        page_size: Requested page size
    """

    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        """Number of pages needed for ``total`` items (at least 1)."""
        return max(1, -(-self.total // self.page_size))
