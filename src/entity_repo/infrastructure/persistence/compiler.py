"""Statement compilation for the PostgreSQL repository.

Filters, sorting and pagination become a SQLAlchemy Select with one bound
parameter per clause, every clause joined by AND.  Column names that the
entity does not declare are not rejected here: they are rendered as plain
(quoted) column references and the database's error surfaces at execution.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from sqlalchemy import Column, Delete, MetaData, Select, Table, and_, delete, select
from sqlalchemy import column as sa_column
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.sql.elements import ColumnElement

from entity_repo.domain.models.enums import Operator
from entity_repo.domain.models.query import WhereClause

from .column_types import column_type
from .descriptors import ColumnDescriptor, primary_key_column

_COMPARATORS: dict[Operator, Callable[[Any, Any], ColumnElement[bool]]] = {
    Operator.EQ: operator.eq,
    Operator.NE: operator.ne,
    Operator.GT: operator.gt,
    Operator.LT: operator.lt,
}


def build_table(table_name: str, descriptors: Sequence[ColumnDescriptor]) -> Table:
    """SQLAlchemy Table mirroring the descriptors, in descriptor order."""
    return Table(
        table_name,
        MetaData(),
        *(
            Column(
                d.name,
                column_type(d),
                primary_key=d.primary_key,
                nullable=not (d.primary_key or d.not_null),
                unique=d.unique,
            )
            for d in descriptors
        ),
    )


def column_ref(table: Table, name: str) -> ColumnElement[Any]:
    if name in table.c:
        return table.c[name]
    return sa_column(name)


def compile_query(
    table: Table,
    clauses: Sequence[WhereClause] = (),
    sort_by: str | None = None,
    descending: bool = False,
    limit: int = 0,
    offset: int = 0,
) -> Select:
    stmt = select(*table.c)

    conditions = [
        _COMPARATORS[clause.operator](column_ref(table, clause.field), clause.value)
        for clause in clauses
    ]
    if conditions:
        stmt = stmt.where(and_(*conditions))

    if sort_by:
        sort_column = column_ref(table, sort_by)
        stmt = stmt.order_by(sort_column.desc() if descending else sort_column.asc())

    if limit > 0:
        stmt = stmt.limit(limit)
    if offset > 0:
        stmt = stmt.offset(offset)
    return stmt


def compile_insert(table: Table, values: Mapping[str, Any]) -> Insert:
    """INSERT ... ON CONFLICT (<pk>) DO NOTHING for one row.

    Only a primary-key conflict is skipped; a clash on any other unique
    column still fails.
    """
    return insert(table).values(dict(values)).on_conflict_do_nothing(
        index_elements=list(table.primary_key.columns) or None
    )


def compile_delete(table: Table, descriptors: Sequence[ColumnDescriptor], id: str) -> Delete:
    return delete(table).where(column_ref(table, primary_key_column(descriptors)) == id)
