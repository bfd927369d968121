"""Column descriptors derived from an entity model's field layout.

extract_descriptors() walks ``model_fields`` in declaration order
(inherited fields first) and inlines every field marked embedded(), so
the result lists the leaf fields exactly as they are stored.  The same
ordered tuple drives schema reconciliation, insert values, query
compilation and row mapping.

Every leaf field must carry a column() annotation.  A missing annotation
raises MissingColumnTag wherever descriptors are used; there is no path
that silently skips such a field.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache
from types import NoneType, UnionType
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel

from entity_repo.domain.errors import (
    DuplicateColumn,
    MissingColumnTag,
    UnsupportedFieldType,
)
from entity_repo.domain.models.base import ColumnTag, Embedded
from entity_repo.domain.models.enums import Constraint


@dataclass(frozen=True)
class ColumnDescriptor:
    """One stored leaf field.

    field_path is the attribute path from the entity root, e.g.
    ("audit", "updated_by") for a field of an embedded model.
    """

    name: str
    field_path: tuple[str, ...]
    annotation: Any
    constraints: frozenset[Constraint]
    entity: str

    @property
    def field(self) -> str:
        """Qualified field name used in error messages."""
        return ".".join((self.entity, *self.field_path))

    @property
    def primary_key(self) -> bool:
        return Constraint.PRIMARY_KEY in self.constraints

    @property
    def not_null(self) -> bool:
        return not self.primary_key and Constraint.NOT_NULL in self.constraints

    @property
    def unique(self) -> bool:
        return not self.primary_key and Constraint.UNIQUE in self.constraints


@lru_cache(maxsize=None)
def extract_descriptors(entity_type: type[BaseModel]) -> tuple[ColumnDescriptor, ...]:
    """Return the ordered column descriptors for an entity model.

    Raises MissingColumnTag, DuplicateColumn, or UnsupportedFieldType
    (embedded() on a field that is not a model).
    """
    descriptors: list[ColumnDescriptor] = []
    _collect(entity_type, (), entity_type.__name__, descriptors)

    seen: set[str] = set()
    for d in descriptors:
        if d.name in seen:
            raise DuplicateColumn(d.name, d.field)
        seen.add(d.name)
    return tuple(descriptors)


def _collect(
    model: type[BaseModel],
    prefix: tuple[str, ...],
    entity: str,
    out: list[ColumnDescriptor],
) -> None:
    for name, info in model.model_fields.items():
        path = (*prefix, name)
        if any(isinstance(m, Embedded) for m in info.metadata):
            nested = info.annotation
            if not (isinstance(nested, type) and issubclass(nested, BaseModel)):
                raise UnsupportedFieldType(".".join((entity, *path)), nested)
            _collect(nested, path, entity, out)
            continue

        tag = next((m for m in info.metadata if isinstance(m, ColumnTag)), None)
        if tag is None:
            raise MissingColumnTag(".".join((entity, *path)))
        out.append(
            ColumnDescriptor(
                name=tag.name,
                field_path=path,
                annotation=info.annotation,
                constraints=tag.constraints,
                entity=entity,
            )
        )


def primary_key_column(descriptors: Sequence[ColumnDescriptor]) -> str:
    """Name of the primary-key column, falling back to "id"."""
    for d in descriptors:
        if d.primary_key:
            return d.name
    return "id"


def extract_values(entity: BaseModel, descriptors: Sequence[ColumnDescriptor]) -> dict[str, Any]:
    """Read insert values from an entity, keyed by column name, in descriptor order."""
    values: dict[str, Any] = {}
    for d in descriptors:
        value: Any = entity
        for part in d.field_path:
            value = getattr(value, part)
        values[d.name] = value
    return values


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Strip ``None`` from ``X | None`` / ``Optional[X]``.

    Returns (inner annotation, nullable).  A union of several non-None
    types is returned unchanged.
    """
    if get_origin(annotation) in (Union, UnionType):
        args = [a for a in get_args(annotation) if a is not NoneType]
        if len(args) == 1:
            return args[0], True
    return annotation, False
