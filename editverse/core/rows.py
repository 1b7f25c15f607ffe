"""Helpers for turning storage rows into validated entities."""

from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from editverse.core.exceptions import InvalidDataError


RowSchema = TypeVar("RowSchema", bound=BaseModel)


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def parse_row(schema: type[RowSchema], row: Any) -> RowSchema:
    """Validate a mapping or attribute-style row against a row schema.

    Raises:
        InvalidDataError: If a field is missing or has the wrong type
    """
    if row is None:
        raise InvalidDataError(f"Missing {schema.__name__}")
    try:
        return schema.model_validate(row)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) for err in e.errors()
        )
        raise InvalidDataError(f"Malformed {schema.__name__}: {fields}") from e
