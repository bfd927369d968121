"""Entity base model and column annotations.

Entities are plain Pydantic models.  Every persisted leaf field names its
column through ``Annotated[..., column("name", ...)]``; a field whose type
is itself a model can be inlined with ``Annotated[..., embedded()]``.

    class Ticket(Entity):
        status: Annotated[str, column("status", Constraint.NOT_NULL)]
        priority: Annotated[int, column("priority")]

Subclassing Entity places the shared base columns (id, created_at,
metadata, tags) first, in that order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Protocol, runtime_checkable

from pydantic import BaseModel, Field, JsonValue, field_validator

from .enums import Constraint

# Closed variant for metadata values: str | int | float | bool | None,
# or a list / str-keyed dict of the same.
MetadataValue = JsonValue


@dataclass(frozen=True)
class ColumnTag:
    """Column name and constraints attached to a field annotation."""

    name: str
    constraints: frozenset[Constraint] = field(default_factory=frozenset)

    @property
    def primary_key(self) -> bool:
        return Constraint.PRIMARY_KEY in self.constraints


@dataclass(frozen=True)
class Embedded:
    """Marks a model-typed field whose own fields are stored inline."""


def column(name: str, *constraints: Constraint | str) -> ColumnTag:
    """Declare the column a field is stored in.

    constraints are Constraint members or their tokens ("primarykey",
    "notnull", "unique").  Raises ValueError for an empty name or an
    unknown token.
    """
    if not name or not name.strip():
        raise ValueError("column name must be a non-empty string")
    return ColumnTag(name=name, constraints=frozenset(Constraint(c) for c in constraints))


def embedded() -> Embedded:
    return Embedded()


@runtime_checkable
class HasBaseFields(Protocol):
    """The shared base fields every persisted entity exposes."""

    id: str
    created_at: datetime
    metadata: dict[str, MetadataValue]
    tags: list[str]


class Entity(BaseModel):
    """Shared base for persisted entities.

    id is assigned by the caller and never generated or changed by a
    repository.  created_at defaults to the current UTC time; a naive value
    is taken to be UTC, matching what comes back from a timestamptz column.
    """

    id: Annotated[str, column("id", Constraint.PRIMARY_KEY)]
    created_at: Annotated[datetime, column("created_at")] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    metadata: Annotated[dict[str, MetadataValue], column("metadata")] = Field(
        default_factory=dict
    )
    tags: Annotated[list[str], column("tags")] = Field(default_factory=list)

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v
