"""In-memory implementation of Repository.

Same contract as PostgresRepository, without a database: rows are kept as
column-name dicts keyed by primary key, so filters and sorting use column
names exactly as SQL queries do.  Intended for tests and prototyping.

Comparison semantics follow SQL: all clauses must hold (AND), a NULL
column never satisfies a comparison, and ``= None`` / ``!= None`` behave
like IS NULL / IS NOT NULL.  Without a sort field rows come back ordered
by primary key.  Ascending sorts put NULLs last, descending sorts first.
Ordering by a column whose values do not compare (JSON maps) raises
QueryExecFailed.

set() enforces the declared constraints: a NULL in a primary-key or NOT
NULL column, or a value already held in a UNIQUE column, raises
InsertFailed.  Only a primary-key clash is skipped (returns 0).
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from entity_repo.domain.errors import InsertFailed, QueryExecFailed
from entity_repo.domain.models.enums import Operator
from entity_repo.domain.models.query import WhereClause
from entity_repo.domain.repositories.base import Repository

from ..descriptors import extract_descriptors, extract_values, primary_key_column
from ..rows import map_row

E = TypeVar("E", bound=BaseModel)


class InMemoryRepository(Repository[E]):
    def __init__(self, entity_type: type[E], table_name: str = "memory") -> None:
        self._entity_type = entity_type
        self._table_name = table_name
        self._descriptors = extract_descriptors(entity_type)
        self._columns = {d.name for d in self._descriptors}
        self._key = primary_key_column(self._descriptors)
        self._rows: dict[Any, dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    @property
    def table_name(self) -> str:
        return self._table_name

    # No I/O happens here, so timeout is accepted but never reached.

    async def set(self, entity: E, *, timeout: float | None = None) -> int:
        if not isinstance(entity, self._entity_type):
            raise TypeError(
                f"expected {self._entity_type.__name__}, got {type(entity).__name__}"
            )
        row = copy.deepcopy(extract_values(entity, self._descriptors))
        async with self._lock:
            self._check_not_null(row)
            if row[self._key] in self._rows:
                return 0
            self._check_unique(row)
            self._rows[row[self._key]] = row
            return 1

    async def delete(self, id: str, *, timeout: float | None = None) -> int:
        async with self._lock:
            return 1 if self._rows.pop(id, None) is not None else 0

    async def query(
        self,
        clauses: Sequence[WhereClause] = (),
        sort_by: str | None = None,
        descending: bool = False,
        limit: int = 0,
        offset: int = 0,
        *,
        timeout: float | None = None,
    ) -> list[E]:
        for name in [c.field for c in clauses] + ([sort_by] if sort_by else []):
            if name not in self._columns:
                raise QueryExecFailed(
                    f'column "{name}" does not exist in table {self._table_name}',
                    table=self._table_name,
                    column=name,
                )

        async with self._lock:
            rows = [copy.deepcopy(r) for r in self._rows.values()]

        try:
            matched = [r for r in rows if all(_matches(r, c) for c in clauses)]
        except TypeError as exc:
            raise QueryExecFailed(
                f"failed to compare values in table {self._table_name}: {exc}",
                table=self._table_name,
            ) from exc

        if sort_by:
            try:
                matched.sort(key=lambda r: _null_last_key(r[sort_by]), reverse=descending)
            except TypeError as exc:
                raise QueryExecFailed(
                    f"cannot order table {self._table_name} by {sort_by}: {exc}",
                    table=self._table_name,
                    column=sort_by,
                ) from exc
        else:
            matched.sort(key=lambda r: r[self._key])

        if offset > 0:
            matched = matched[offset:]
        if limit > 0:
            matched = matched[:limit]
        return [map_row(self._entity_type, self._descriptors, r, self._table_name) for r in matched]

    def _check_not_null(self, row: dict[str, Any]) -> None:
        for d in self._descriptors:
            if (d.primary_key or d.not_null) and row[d.name] is None:
                raise InsertFailed(
                    f"null value in column {d.name} of table {self._table_name} "
                    "violates not-null constraint",
                    table=self._table_name,
                    column=d.name,
                    field=d.field,
                )

    def _check_unique(self, row: dict[str, Any]) -> None:
        for d in self._descriptors:
            value = row[d.name]
            if not d.unique or value is None:
                continue
            if any(existing[d.name] == value for existing in self._rows.values()):
                raise InsertFailed(
                    f"duplicate value for unique column {d.name} in table {self._table_name}",
                    table=self._table_name,
                    column=d.name,
                    field=d.field,
                )


def _matches(row: dict[str, Any], clause: WhereClause) -> bool:
    actual = row[clause.field]
    if clause.value is None:
        if clause.operator is Operator.EQ:
            return actual is None
        if clause.operator is Operator.NE:
            return actual is not None
        return False
    if actual is None:
        return False
    if clause.operator is Operator.EQ:
        return actual == clause.value
    if clause.operator is Operator.NE:
        return actual != clause.value
    if clause.operator is Operator.GT:
        return actual > clause.value
    return actual < clause.value


def _null_last_key(value: Any) -> tuple[bool, Any]:
    return (value is None, value)
