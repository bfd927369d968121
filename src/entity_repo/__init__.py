"""Generic entity persistence on PostgreSQL.

    from entity_repo import Entity, PostgresRepository, WhereClause, column

    class Ticket(Entity):
        status: Annotated[str, column("status", "notnull")]
        priority: Annotated[int, column("priority")]

    tickets = await PostgresRepository.open(engine, "tickets", Ticket)
    await tickets.set(Ticket(id="t-1", status="open", priority=3))
    urgent = await tickets.query(
        [WhereClause.of("status", "=", "open"), WhereClause.of("priority", ">", 2)],
        sort_by="created_at",
        descending=True,
    )
"""

from entity_repo.domain import errors
from entity_repo.domain.errors import RepositoryError
from entity_repo.domain.models import (
    Constraint,
    Entity,
    HasBaseFields,
    MetadataValue,
    Operator,
    WhereClause,
    column,
    embedded,
)
from entity_repo.domain.repositories import Repository
from entity_repo.infrastructure.persistence import (
    ColumnDrift,
    InMemoryRepository,
    PostgresRepository,
)

__all__ = [
    "ColumnDrift",
    "Constraint",
    "Entity",
    "HasBaseFields",
    "InMemoryRepository",
    "MetadataValue",
    "Operator",
    "PostgresRepository",
    "Repository",
    "RepositoryError",
    "WhereClause",
    "column",
    "embedded",
    "errors",
]
