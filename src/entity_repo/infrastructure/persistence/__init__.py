"""Persistence package.

Descriptor extraction, column type mapping, schema reconciliation, query
compilation and row mapping, plus the repositories built on them.
"""

from .descriptors import ColumnDescriptor, extract_descriptors
from .reconciler import ColumnDrift, SchemaReconciler
from .repositories import InMemoryRepository, PostgresRepository

__all__ = [
    "ColumnDescriptor",
    "ColumnDrift",
    "InMemoryRepository",
    "PostgresRepository",
    "SchemaReconciler",
    "extract_descriptors",
]
