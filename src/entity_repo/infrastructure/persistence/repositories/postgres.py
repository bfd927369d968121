"""PostgreSQL implementation of Repository.

A PostgresRepository is bound to one entity type and one table.  It is
obtained through ``await PostgresRepository.open(engine, table, Entity)``,
which reconciles the table schema before returning; if reconciliation
fails, open() raises and no repository is handed out.

Each call checks one connection out of the engine's pool for a single
statement.  set() and delete() each run in their own short transaction;
query() reads through a plain connection and drains every row before
returning.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from typing import TypeVar

from pydantic import BaseModel
from sqlalchemy.sql.expression import Executable
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from entity_repo.domain.errors import DeleteFailed, InsertFailed, QueryExecFailed
from entity_repo.domain.models.query import WhereClause
from entity_repo.domain.repositories.base import Repository

from ..compiler import build_table, compile_delete, compile_insert, compile_query
from ..descriptors import ColumnDescriptor, extract_descriptors, extract_values
from ..reconciler import ColumnDrift, SchemaReconciler
from ..rows import map_row

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseModel)
R = TypeVar("R")


class PostgresRepository(Repository[E]):
    def __init__(
        self,
        engine: AsyncEngine,
        table_name: str,
        entity_type: type[E],
        *,
        default_timeout: float | None = None,
    ) -> None:
        self._engine = engine
        self._table_name = table_name
        self._entity_type = entity_type
        self._default_timeout = default_timeout
        self._descriptors = extract_descriptors(entity_type)
        self._table = build_table(table_name, self._descriptors)
        self._reconciler = SchemaReconciler(table_name, self._descriptors)
        self._opened = False

    @classmethod
    async def open(
        cls,
        engine: AsyncEngine,
        table_name: str,
        entity_type: type[E],
        *,
        default_timeout: float | None = None,
        timeout: float | None = None,
    ) -> PostgresRepository[E]:
        """Reconcile the table schema and return a ready repository.

        All DDL runs in one transaction.  Raises an EntityDefinitionError
        or SchemaReconciliationError on failure.
        """
        repo = cls(engine, table_name, entity_type, default_timeout=default_timeout)
        issued = await repo._with_deadline(repo._reconcile(), timeout)
        logger.info(
            "Opened repository for %s on table %s (%d DDL statements)",
            entity_type.__name__,
            table_name,
            len(issued),
        )
        repo._opened = True
        return repo

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def entity_type(self) -> type[E]:
        return self._entity_type

    @property
    def descriptors(self) -> tuple[ColumnDescriptor, ...]:
        return self._descriptors

    # --- Repository interface ---

    async def set(self, entity: E, *, timeout: float | None = None) -> int:
        self._require_open()
        if not isinstance(entity, self._entity_type):
            raise TypeError(
                f"expected {self._entity_type.__name__}, got {type(entity).__name__}"
            )
        stmt = compile_insert(self._table, extract_values(entity, self._descriptors))
        try:
            inserted = await self._with_deadline(self._execute(stmt), timeout)
        except SQLAlchemyError as exc:
            logger.error("Failed to insert entity into %s: %s", self._table_name, exc)
            raise InsertFailed(
                f"failed to insert entity into table {self._table_name}: {exc}",
                table=self._table_name,
            ) from exc
        if inserted == 0:
            logger.debug(
                "Insert into %s skipped; id %r already exists",
                self._table_name,
                getattr(entity, "id", None),
            )
        return inserted

    async def delete(self, id: str, *, timeout: float | None = None) -> int:
        self._require_open()
        stmt = compile_delete(self._table, self._descriptors, id)
        try:
            return await self._with_deadline(self._execute(stmt), timeout)
        except SQLAlchemyError as exc:
            logger.error("Failed to delete %r from %s: %s", id, self._table_name, exc)
            raise DeleteFailed(
                f"failed to delete entity with id {id} from table {self._table_name}: {exc}",
                table=self._table_name,
            ) from exc

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
        self._require_open()
        stmt = compile_query(self._table, clauses, sort_by, descending, limit, offset)
        try:
            rows = await self._with_deadline(self._fetch_all(stmt), timeout)
        except SQLAlchemyError as exc:
            sql = stmt.compile(dialect=postgresql.dialect())
            logger.error("Query on %s failed: %s", self._table_name, exc)
            raise QueryExecFailed(
                f"failed to execute query on table {self._table_name} ({sql}): {exc}",
                table=self._table_name,
            ) from exc
        return [map_row(self._entity_type, self._descriptors, row, self._table_name) for row in rows]

    async def detect_drift(self, *, timeout: float | None = None) -> list[ColumnDrift]:
        """Compare live column types with the entity's declared types."""
        self._require_open()

        async def run() -> list[ColumnDrift]:
            async with self._engine.connect() as conn:
                return await self._reconciler.detect_drift(conn)

        return await self._with_deadline(run(), timeout)

    # --- internals ---

    async def _reconcile(self) -> list[str]:
        async with self._engine.begin() as conn:
            return await self._reconciler.reconcile(conn)

    async def _execute(self, stmt: Executable) -> int:
        async with self._engine.begin() as conn:
            result = await conn.execute(stmt)
            return result.rowcount

    async def _fetch_all(self, stmt: Executable) -> list:
        async with self._engine.connect() as conn:
            result = await conn.execute(stmt)
            return list(result.mappings().all())

    async def _with_deadline(self, aw: Awaitable[R], timeout: float | None) -> R:
        if timeout is None:
            timeout = self._default_timeout
        return await asyncio.wait_for(aw, timeout)

    def _require_open(self) -> None:
        if not self._opened:
            raise RuntimeError(
                f"repository for table {self._table_name} was not opened; "
                "use PostgresRepository.open()"
            )
