"""Filter clause model for repository queries."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from .enums import Operator


class WhereClause(BaseModel):
    """A single comparison ``<field> <operator> <value>``.

    field is a column name.  The operator token is normalised on
    construction ("==" becomes "=", "<>" becomes "!=").  A query combines
    all of its clauses with AND.
    """

    model_config = ConfigDict(frozen=True)

    field: str
    operator: Operator
    value: Any

    @field_validator("operator", mode="before")
    @classmethod
    def _normalise_operator(cls, v: Any) -> Operator:
        return Operator.parse(v)

    @classmethod
    def of(cls, field: str, operator: Operator | str, value: Any) -> WhereClause:
        """Positional constructor: WhereClause.of("priority", ">", 2)."""
        return cls(field=field, operator=operator, value=value)
