"""Search, status filtering and pagination over store snapshots.

All functions are pure: they take records and return new lists.
"""

from typing import Iterable, Optional, Sequence, TypeVar

from timeflow.core.models import STATUS_FILTERS, Client, PagedResult, Pagination, Project

T = TypeVar("T")


def text_includes(haystack: Optional[str], needle: str) -> bool:
    """Case-insensitive substring test. ``None`` never matches."""
    if haystack is None:
        return False
    return needle.lower() in haystack.lower()


def paginate(items: Sequence[T], pagination: Pagination) -> PagedResult[T]:
    """Slice ``items`` to one page.

    An out-of-range page yields an empty slice; ``total`` is always the
    full count.
    """
    start = pagination.offset
    return PagedResult(
        items=list(items[start : start + pagination.page_size]),
        total=len(items),
        page=pagination.page,
        page_size=pagination.page_size,
    )


def client_matches(client: Client, query: str) -> bool:
    """Match against name, company, email and phone."""
    if not query:
        return True
    fields = (client.name, client.company, client.contact.email, client.contact.phone)
    return any(text_includes(value, query) for value in fields)


def project_matches(project: Project, query: str, client_names: dict[str, str]) -> bool:
    """Match against name, space-joined tags and the owning client's name."""
    if not query:
        return True
    owner = client_names.get(project.client_id) if project.client_id else None
    fields = (project.name, " ".join(project.tags), owner)
    return any(text_includes(value, query) for value in fields)


def list_clients(
    clients: Iterable[Client], query: str, pagination: Pagination
) -> PagedResult[Client]:
    """Filter clients by ``query`` and return one page.

    Example:
        >>> list_clients(store.all_clients(), "acme", Pagination(1, 10)).total
        1
    """
    filtered = [c for c in clients if client_matches(c, query)]
    return paginate(filtered, pagination)


def list_projects(
    projects: Iterable[Project],
    clients: Iterable[Client],
    query: str,
    status: str,
    pagination: Pagination,
) -> PagedResult[Project]:
    """Filter projects by status, then by ``query``, and return one page.

    Args:
        projects: Projects to search
        clients: Clients used to resolve owner names
        query: Substring to look for (empty matches everything)
        status: "active", "archived" or "all"
        pagination: Page to return

    Raises:
        ValueError: If status is not a known filter
    """
    if status not in STATUS_FILTERS:
        raise ValueError(f"status must be one of {', '.join(STATUS_FILTERS)}, got {status!r}")

    candidates = list(projects)
    if status != "all":
        candidates = [p for p in candidates if p.status.value == status]

    client_names = {c.id: c.name for c in clients}
    filtered = [p for p in candidates if project_matches(p, query, client_names)]
    return paginate(filtered, pagination)
