"""Concrete repository implementations.

PostgresRepository is the production implementation; InMemoryRepository
honours the same contract without a database.
"""

from .memory import InMemoryRepository
from .postgres import PostgresRepository

__all__ = [
    "InMemoryRepository",
    "PostgresRepository",
]
