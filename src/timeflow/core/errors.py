"""Exceptions raised by the Timeflow core."""


class TimeflowError(Exception):
    """Base class for all Timeflow errors."""


class NotFoundError(TimeflowError):
    """Raised when an update or delete targets a record that does not exist.

    Attributes:
        kind: Record kind ("client" or "project")
        record_id: Identifier that was looked up
    """

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} not found: {record_id}")


class StoreNotOpenError(TimeflowError):
    """Raised when the document store is used before ``open()``."""

    def __init__(self) -> None:
        super().__init__("Document store is not open. Call open() first.")


class SnapshotError(TimeflowError):
    """Raised when a persisted snapshot does not have the expected shape."""
