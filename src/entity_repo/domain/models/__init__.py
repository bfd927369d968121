"""Domain model package.

Entity declarations, column annotations and query values.  Import from
this package rather than individual modules.
"""

from .base import (
    ColumnTag,
    Embedded,
    Entity,
    HasBaseFields,
    MetadataValue,
    column,
    embedded,
)
from .enums import Constraint, Operator, SemanticType
from .query import WhereClause

__all__ = [
    "ColumnTag",
    "Constraint",
    "Embedded",
    "Entity",
    "HasBaseFields",
    "MetadataValue",
    "Operator",
    "SemanticType",
    "WhereClause",
    "column",
    "embedded",
]
