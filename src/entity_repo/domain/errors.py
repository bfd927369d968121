"""Exceptions raised by the persistence layer.

Driver exceptions are never returned raw: each backing-store failure is
re-raised as one of the classes below with the table, column or field it
concerns, and the original error chained as ``__cause__``.  Nothing is
retried internally.
"""

from __future__ import annotations

from typing import Any, get_origin


class RepositoryError(Exception):
    """Base exception for all persistence-layer errors.

    Attributes:
        table: Table the failing operation targeted, if any.
        column: Column involved, if any.
        field: Entity field involved, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        table: str | None = None,
        column: str | None = None,
        field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.table = table
        self.column = column
        self.field = field


# --- Entity definition ---

class EntityDefinitionError(RepositoryError):
    """The entity type cannot be mapped onto a table."""


class UnsupportedFieldType(EntityDefinitionError):
    """A field's Python type has no column type mapping."""

    def __init__(self, field: str, field_type: Any) -> None:
        self.field_type = field_type
        super().__init__(
            f"unsupported type {_type_name(field_type)} for field {field}",
            field=field,
        )


class MissingColumnTag(EntityDefinitionError):
    """A leaf field carries no column() annotation."""

    def __init__(self, field: str) -> None:
        super().__init__(f"field {field} has no column annotation", field=field)


class DuplicateColumn(EntityDefinitionError):
    """Two fields of one entity map to the same column name."""

    def __init__(self, column: str, field: str) -> None:
        super().__init__(
            f"column {column} declared more than once (again on field {field})",
            column=column,
            field=field,
        )


# --- Schema reconciliation ---

class SchemaReconciliationError(RepositoryError):
    """The backing table could not be brought up to date."""


class TableCheckFailed(SchemaReconciliationError):
    pass


class TableCreateFailed(SchemaReconciliationError):
    pass


class ColumnCheckFailed(SchemaReconciliationError):
    pass


class ColumnAddFailed(SchemaReconciliationError):
    pass


# --- Per-call operations ---

class OperationError(RepositoryError):
    """A set/delete/query call failed against the backing store."""


class InsertFailed(OperationError):
    pass


class DeleteFailed(OperationError):
    pass


class QueryExecFailed(OperationError):
    pass


class RowScanFailed(OperationError):
    pass


class UnsupportedOperator(RepositoryError, ValueError):
    """A filter clause used an operator outside =, !=, >, <."""

    def __init__(self, token: Any) -> None:
        self.token = token
        super().__init__(f"unsupported filter operator {token!r}")


def _type_name(tp: Any) -> str:
    if get_origin(tp) is None and isinstance(tp, type):
        return tp.__name__
    return repr(tp)
