"""Generic repository base interface.

Repository[T] is the one data-access abstraction of this package.  A
repository is bound to a single entity type and a single table for its
whole lifetime.  Concrete implementations live in
entity_repo/infrastructure/persistence/repositories/.

Design notes:
  - Methods are coroutines so one interface covers both the asyncpg-backed
    repository and the in-memory one.
  - T is the entity model type (never a driver row).
  - There is no update(): set() inserts and skips rows whose id already exists.
  - Every method accepts an optional timeout in seconds; on expiry the
    in-flight call is cancelled and asyncio.TimeoutError propagates.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Generic, TypeVar

from entity_repo.domain.models.query import WhereClause

T = TypeVar("T")


class Repository(ABC, Generic[T]):
    """Abstract create/delete/query interface for one entity type."""

    @abstractmethod
    async def set(self, entity: T, *, timeout: float | None = None) -> int:
        """Insert the entity; return 1 if inserted, 0 if its id already existed."""

    @abstractmethod
    async def delete(self, id: str, *, timeout: float | None = None) -> int:
        """Remove the entity with the given id; return the number of rows removed."""

    @abstractmethod
    async def query(
        self,
        clauses: Sequence[WhereClause] = (),
        sort_by: str | None = None,
        descending: bool = False,
        limit: int = 0,
        offset: int = 0,
        *,
        timeout: float | None = None,
    ) -> list[T]:
        """Return entities matching every clause, sorted and paginated.

        limit <= 0 means unlimited; an offset past the last match yields [].
        """
