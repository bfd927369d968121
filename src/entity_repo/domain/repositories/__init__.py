"""Domain repository interfaces.

Concrete implementations live in entity_repo/infrastructure/persistence/
and are wired at the application boundary.
"""

from .base import Repository

__all__ = [
    "Repository",
]
