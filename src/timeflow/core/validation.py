"""Schema validation for client and project input.

Validation never raises for bad user input. Every field is checked and
the problems are returned together as a mapping from field path (dot
notation, e.g. ``contact.email``) to a human-readable message.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

NAME_MIN_LENGTH = 2


@dataclass(frozen=True)
class ValidationResult:
    """Tagged validation outcome.

    Attributes:
        ok: True when the input is valid
        value: Cleaned input (only when ok)
        errors: Field path to message (only when not ok)
    """

    ok: bool
    value: Optional[dict[str, Any]] = None
    errors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def success(cls, value: dict[str, Any]) -> "ValidationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, errors: dict[str, str]) -> "ValidationResult":
        return cls(ok=False, errors=errors)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _check_name(value: str) -> str:
    if len(value) < NAME_MIN_LENGTH:
        raise PydanticCustomError(
            "name_too_short", f"Name must be at least {NAME_MIN_LENGTH} characters"
        )
    return value


class ContactInput(BaseModel):
    """Client contact details."""

    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None

    @field_validator("email", "phone", "website", mode="before")
    @classmethod
    def blank_is_unset(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _EMAIL_PATTERN.match(value):
            raise PydanticCustomError("invalid_email", "Invalid email")
        return value

    @field_validator("website")
    @classmethod
    def check_website(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise PydanticCustomError("invalid_url", "Invalid URL")
        return value


class ClientInput(BaseModel):
    """Client form input."""

    model_config = ConfigDict(extra="ignore")

    name: str
    company: Optional[str] = None
    contact: ContactInput = Field(default_factory=ContactInput)
    notes: Optional[str] = None

    @field_validator("company", "notes", mode="before")
    @classmethod
    def blank_is_unset(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _check_name(value)


class ProjectInput(BaseModel):
    """Project form input."""

    model_config = ConfigDict(extra="ignore")

    name: str
    client_id: Optional[str] = None
    status: Literal["active", "archived"] = "active"
    rate_per_hour: Optional[float] = Field(default=None, allow_inf_nan=False)
    tags: list[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator("client_id", "rate_per_hour", "notes", mode="before")
    @classmethod
    def blank_is_unset(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _check_name(value)

    @field_validator("rate_per_hour")
    @classmethod
    def check_rate(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value < 0:
            raise PydanticCustomError("negative_rate", "Rate must be 0 or greater")
        return value


def _check_timestamp(value: str) -> str:
    try:
        datetime.fromisoformat(value)
    except ValueError:
        raise PydanticCustomError("invalid_timestamp", "Invalid ISO timestamp")
    return value


class ContactRecord(BaseModel):
    """Stored contact details."""

    model_config = ConfigDict(extra="ignore", strict=True)

    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None


class ClientRecord(BaseModel):
    """Client as stored in a snapshot (camelCase keys, no coercion)."""

    model_config = ConfigDict(extra="ignore", strict=True)

    id: str
    name: str
    company: Optional[str] = None
    contact: Optional[ContactRecord] = None
    notes: Optional[str] = None
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    @field_validator("created_at", "updated_at")
    @classmethod
    def check_timestamp(cls, value: str) -> str:
        return _check_timestamp(value)


class ProjectRecord(BaseModel):
    """Project as stored in a snapshot (camelCase keys, no coercion)."""

    model_config = ConfigDict(extra="ignore", strict=True)

    id: str
    name: str
    client_id: Optional[str] = Field(default=None, alias="clientId")
    status: Literal["active", "archived"] = "active"
    rate_per_hour: Optional[float] = Field(
        default=None, alias="ratePerHour", ge=0, allow_inf_nan=False
    )
    tags: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    @field_validator("created_at", "updated_at")
    @classmethod
    def check_timestamp(cls, value: str) -> str:
        return _check_timestamp(value)


def _issues(error: ValidationError) -> dict[str, str]:
    issues: dict[str, str] = {}
    for item in error.errors():
        path = ".".join(str(part) for part in item["loc"])
        # first message per field wins
        issues.setdefault(path, item["msg"])
    return issues


def _validate(model: type[BaseModel], data: dict[str, Any]) -> ValidationResult:
    try:
        parsed = model.model_validate(data)
    except ValidationError as e:
        return ValidationResult.failure(_issues(e))
    return ValidationResult.success(parsed.model_dump())


def validate_client(data: dict[str, Any]) -> ValidationResult:
    """Validate client form input.

    Args:
        data: Raw fields (name, company, contact, notes)

    Returns:
        ValidationResult with cleaned fields or field errors

    Example:
        >>> validate_client({"name": "A", "contact": {"email": "nope"}}).errors
        {'name': 'Name must be at least 2 characters', 'contact.email': 'Invalid email'}
    """
    return _validate(ClientInput, data)


def validate_project(data: dict[str, Any]) -> ValidationResult:
    """Validate project form input.

    Args:
        data: Raw fields (name, client_id, status, rate_per_hour, tags, notes)

    Returns:
        ValidationResult with cleaned fields or field errors
    """
    return _validate(ProjectInput, data)


def validate_client_record(data: Any) -> ValidationResult:
    """Check that a stored client record has the snapshot shape and types."""
    return _validate(ClientRecord, data)


def validate_project_record(data: Any) -> ValidationResult:
    """Check that a stored project record has the snapshot shape and types."""
    return _validate(ProjectRecord, data)
