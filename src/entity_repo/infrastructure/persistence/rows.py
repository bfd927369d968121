"""Result row to entity mapping.

Rows are bound by column name, not by position: each descriptor's column
is looked up in the row mapping and placed at the descriptor's field path,
rebuilding embedded models in the same order the extractor flattened them.
The assembled data is then validated by the entity model, so every row
yields a fresh instance.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from entity_repo.domain.errors import RowScanFailed

from .descriptors import ColumnDescriptor

E = TypeVar("E", bound=BaseModel)


def map_row(
    entity_type: type[E],
    descriptors: Sequence[ColumnDescriptor],
    row: Mapping[str, Any],
    table: str | None = None,
) -> E:
    data: dict[str, Any] = {}
    for d in descriptors:
        try:
            value = row[d.name]
        except KeyError:
            raise RowScanFailed(
                f"column {d.name} missing from result row of table {table}",
                table=table,
                column=d.name,
                field=d.field,
            ) from None
        target = data
        for part in d.field_path[:-1]:
            target = target.setdefault(part, {})
        target[d.field_path[-1]] = value

    try:
        return entity_type.model_validate(data)
    except ValidationError as exc:
        failed = _descriptor_for_error(descriptors, exc)
        raise RowScanFailed(
            f"failed to scan row of table {table} into {entity_type.__name__}: {exc}",
            table=table,
            column=failed.name if failed else None,
            field=failed.field if failed else None,
        ) from exc


def _descriptor_for_error(
    descriptors: Sequence[ColumnDescriptor], exc: ValidationError
) -> ColumnDescriptor | None:
    errors = exc.errors()
    if not errors:
        return None
    loc = tuple(str(part) for part in errors[0]["loc"])
    for d in descriptors:
        if loc[: len(d.field_path)] == d.field_path:
            return d
    return None
