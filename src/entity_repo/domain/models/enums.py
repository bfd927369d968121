"""Domain enumerations for entity persistence.

All string-valued enums use str mixin so they compare equal to the raw
tokens callers write in field annotations and filter clauses.
"""

from __future__ import annotations

from enum import Enum

from entity_repo.domain.errors import UnsupportedOperator


class Constraint(str, Enum):
    """Column constraint tokens accepted by column()."""

    PRIMARY_KEY = "primarykey"
    NOT_NULL = "notnull"
    UNIQUE = "unique"


class Operator(str, Enum):
    """Comparison operators a filter clause may use.

    Clauses are always combined with AND; there is no OR operator.
    """

    EQ = "="
    NE = "!="
    GT = ">"
    LT = "<"

    @classmethod
    def parse(cls, token: Operator | str) -> Operator:
        """Normalise an operator token (e.g. "==" or "<>") to an Operator."""
        if isinstance(token, Operator):
            return token
        try:
            return _OPERATOR_ALIASES[token.strip()]
        except (KeyError, AttributeError):
            raise UnsupportedOperator(token) from None


_OPERATOR_ALIASES: dict[str, Operator] = {
    "=": Operator.EQ,
    "==": Operator.EQ,
    "!=": Operator.NE,
    "<>": Operator.NE,
    "≠": Operator.NE,
    ">": Operator.GT,
    "<": Operator.LT,
}


class SemanticType(str, Enum):
    """Storage-independent kind of an entity field."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    JSON_MAP = "json_map"
    STRING_ARRAY = "string_array"
