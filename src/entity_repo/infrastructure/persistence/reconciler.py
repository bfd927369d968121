"""Additive-only schema reconciliation against information_schema.

SchemaReconciler brings a table in line with an entity's descriptors:

  1. create the table (with no columns) if it does not exist;
  2. add every declared column that does not exist yet.

Existing columns are never altered or dropped, even if their type no
longer matches the declaration.  Such drift is only reported, by
detect_drift(), never corrected here.  Running reconcile() against a table
that is already up to date issues no DDL.

reconcile() uses the connection it is given as-is; callers run it inside
one transaction so that a failed step leaves nothing half-applied.  Two
processes reconciling the same table concurrently can both see a column
as missing, and one ADD COLUMN then fails with ColumnAddFailed; serialise
construction or retry.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from entity_repo.domain.errors import (
    ColumnAddFailed,
    ColumnCheckFailed,
    TableCheckFailed,
    TableCreateFailed,
)

from .column_types import column_ddl_type, udt_name
from .descriptors import ColumnDescriptor

logger = logging.getLogger(__name__)

_TABLE_EXISTS = text(
    """
    SELECT EXISTS (
        SELECT 1
        FROM information_schema.tables
        WHERE table_schema = current_schema() AND table_name = :table_name
    )
    """
)

_COLUMN_EXISTS = text(
    """
    SELECT EXISTS (
        SELECT 1
        FROM information_schema.columns
        WHERE table_schema = current_schema()
          AND table_name = :table_name
          AND column_name = :column_name
    )
    """
)

_COLUMN_UDT_NAMES = text(
    """
    SELECT column_name, udt_name
    FROM information_schema.columns
    WHERE table_schema = current_schema() AND table_name = :table_name
    """
)


@dataclass(frozen=True)
class ColumnDrift:
    """A live column whose type differs from its declaration."""

    column: str
    declared: str
    actual: str


class SchemaReconciler:
    def __init__(self, table_name: str, descriptors: Sequence[ColumnDescriptor]) -> None:
        self._table_name = table_name
        self._descriptors = tuple(descriptors)
        self._preparer = postgresql.dialect().identifier_preparer

    @property
    def table_name(self) -> str:
        return self._table_name

    # --- DDL synthesis ---

    def create_table_ddl(self) -> str:
        return f"CREATE TABLE {self._preparer.quote(self._table_name)} ()"

    def add_column_ddl(self, descriptor: ColumnDescriptor) -> str:
        """ALTER TABLE ... ADD COLUMN for one descriptor.

        PRIMARY KEY suppresses NOT NULL and UNIQUE; otherwise each is
        emitted independently.
        """
        definition = f"{self._preparer.quote(descriptor.name)} {column_ddl_type(descriptor)}"
        if descriptor.primary_key:
            definition += " PRIMARY KEY"
        else:
            if descriptor.not_null:
                definition += " NOT NULL"
            if descriptor.unique:
                definition += " UNIQUE"
        return (
            f"ALTER TABLE {self._preparer.quote(self._table_name)} "
            f"ADD COLUMN {definition}"
        )

    # --- Reconciliation ---

    async def reconcile(self, conn: AsyncConnection) -> list[str]:
        """Create the table and any missing columns; return the DDL issued.

        Every column type is resolved before the first statement runs, so
        an UnsupportedFieldType never leaves a table partially migrated.
        """
        add_statements = [(d, self.add_column_ddl(d)) for d in self._descriptors]
        issued: list[str] = []

        if not await self.table_exists(conn):
            ddl = self.create_table_ddl()
            try:
                await conn.execute(text(ddl))
            except SQLAlchemyError as exc:
                raise TableCreateFailed(
                    f"failed to create table {self._table_name}: {exc}",
                    table=self._table_name,
                ) from exc
            logger.info("Created table %s", self._table_name)
            issued.append(ddl)

        for descriptor, ddl in add_statements:
            if await self.column_exists(conn, descriptor):
                continue
            try:
                await conn.execute(text(ddl))
            except SQLAlchemyError as exc:
                raise ColumnAddFailed(
                    f"failed to add column {descriptor.name} to table {self._table_name}: {exc}",
                    table=self._table_name,
                    column=descriptor.name,
                    field=descriptor.field,
                ) from exc
            logger.info("Added column %s.%s: %s", self._table_name, descriptor.name, ddl)
            issued.append(ddl)

        return issued

    async def table_exists(self, conn: AsyncConnection) -> bool:
        try:
            result = await conn.execute(_TABLE_EXISTS, {"table_name": self._table_name})
        except SQLAlchemyError as exc:
            raise TableCheckFailed(
                f"failed to check whether table {self._table_name} exists: {exc}",
                table=self._table_name,
            ) from exc
        return bool(result.scalar())

    async def column_exists(self, conn: AsyncConnection, descriptor: ColumnDescriptor) -> bool:
        try:
            result = await conn.execute(
                _COLUMN_EXISTS,
                {"table_name": self._table_name, "column_name": descriptor.name},
            )
        except SQLAlchemyError as exc:
            raise ColumnCheckFailed(
                f"failed to check column {descriptor.name} of table {self._table_name}: {exc}",
                table=self._table_name,
                column=descriptor.name,
                field=descriptor.field,
            ) from exc
        return bool(result.scalar())

    # --- Drift ---

    async def detect_drift(self, conn: AsyncConnection) -> list[ColumnDrift]:
        """Report declared columns whose live type differs from the declaration.

        Columns missing from the table are not drift; reconcile() adds them.
        """
        try:
            result = await conn.execute(_COLUMN_UDT_NAMES, {"table_name": self._table_name})
        except SQLAlchemyError as exc:
            raise ColumnCheckFailed(
                f"failed to read columns of table {self._table_name}: {exc}",
                table=self._table_name,
            ) from exc
        live = {row.column_name: row.udt_name for row in result.all()}

        drift: list[ColumnDrift] = []
        for d in self._descriptors:
            actual = live.get(d.name)
            declared = udt_name(d)
            if actual is not None and actual != declared:
                logger.warning(
                    "Column %s.%s is %s but declared as %s",
                    self._table_name,
                    d.name,
                    actual,
                    declared,
                )
                drift.append(ColumnDrift(column=d.name, declared=declared, actual=actual))
        return drift
