"""Mapping from entity field types to PostgreSQL column types.

| Python annotation              | semantic type | column type              |
|--------------------------------|---------------|--------------------------|
| str (and str subclasses)       | STRING        | TEXT                     |
| int (any width, not bool)      | INTEGER       | INTEGER                  |
| float                          | FLOAT         | REAL                     |
| bool                           | BOOLEAN       | BOOLEAN                  |
| datetime                       | TIMESTAMP     | TIMESTAMP WITH TIME ZONE |
| dict[str, <any value type>]    | JSON_MAP      | JSONB                    |
| list[str] / tuple[str, ...]    | STRING_ARRAY  | TEXT[]                   |

``X | None`` maps as X.  Every other annotation raises
UnsupportedFieldType naming the field.

REAL is single precision while a Python float is double, so a float comes
back rounded to about 7 significant digits (0.1 reads back as
0.10000000149011612).  Entities that need exact round-trips of
fractional values should store them as str or scaled int.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, MutableMapping, MutableSequence, Sequence
from datetime import datetime
from typing import Any, get_args, get_origin

from sqlalchemy import REAL, Boolean, DateTime, Integer, Text
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.types import TypeEngine

from entity_repo.domain.errors import UnsupportedFieldType
from entity_repo.domain.models.enums import SemanticType

from .descriptors import ColumnDescriptor, unwrap_optional

_MAPPING_ORIGINS = (dict, Mapping, MutableMapping)
_SEQUENCE_ORIGINS = (list, Sequence, MutableSequence)

# SemanticType -> (SQLAlchemy type factory, information_schema udt_name)
_COLUMN_TYPES: dict[SemanticType, tuple[Callable[[], TypeEngine], str]] = {
    SemanticType.STRING: (Text, "text"),
    SemanticType.INTEGER: (Integer, "int4"),
    SemanticType.FLOAT: (REAL, "float4"),
    SemanticType.BOOLEAN: (Boolean, "bool"),
    SemanticType.TIMESTAMP: (lambda: DateTime(timezone=True), "timestamptz"),
    SemanticType.JSON_MAP: (JSONB, "jsonb"),
    SemanticType.STRING_ARRAY: (lambda: ARRAY(Text()), "_text"),
}

_PG_DIALECT = postgresql.dialect()


def classify(annotation: Any) -> SemanticType | None:
    """Return the semantic type of an annotation, or None if unsupported."""
    tp, _ = unwrap_optional(annotation)
    origin = get_origin(tp)

    if origin is None:
        if not isinstance(tp, type):
            return None
        # bool before int: bool is an int subclass.
        if issubclass(tp, bool):
            return SemanticType.BOOLEAN
        if issubclass(tp, int):
            return SemanticType.INTEGER
        if issubclass(tp, float):
            return SemanticType.FLOAT
        if issubclass(tp, str):
            return SemanticType.STRING
        if issubclass(tp, datetime):
            return SemanticType.TIMESTAMP
        return None

    args = get_args(tp)
    if origin in _MAPPING_ORIGINS:
        if len(args) == 2 and args[0] is str:
            return SemanticType.JSON_MAP
        return None
    if origin in _SEQUENCE_ORIGINS:
        if args == (str,):
            return SemanticType.STRING_ARRAY
        return None
    if origin is tuple and args == (str, ...):
        return SemanticType.STRING_ARRAY
    return None


def semantic_type(descriptor: ColumnDescriptor) -> SemanticType:
    kind = classify(descriptor.annotation)
    if kind is None:
        raise UnsupportedFieldType(descriptor.field, descriptor.annotation)
    return kind


def column_type(descriptor: ColumnDescriptor) -> TypeEngine:
    """SQLAlchemy type used to bind and load values of this column."""
    factory, _ = _COLUMN_TYPES[semantic_type(descriptor)]
    return factory()


def column_ddl_type(descriptor: ColumnDescriptor) -> str:
    """Column type as rendered in DDL, e.g. "TIMESTAMP WITH TIME ZONE"."""
    return column_type(descriptor).compile(dialect=_PG_DIALECT)


def udt_name(descriptor: ColumnDescriptor) -> str:
    """information_schema.columns.udt_name expected for this column."""
    _, name = _COLUMN_TYPES[semantic_type(descriptor)]
    return name
