"""Tests for the field type to column type mapping."""

from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Optional

import pytest
from pydantic import JsonValue

from entity_repo.domain.errors import UnsupportedFieldType
from entity_repo.domain.models import SemanticType
from entity_repo.infrastructure.persistence.column_types import (
    classify,
    column_ddl_type,
    semantic_type,
    udt_name,
)
from entity_repo.infrastructure.persistence.descriptors import ColumnDescriptor


class Status(str, Enum):
    OPEN = "open"


class Level(IntEnum):
    LOW = 1


def _descriptor(annotation, name="payload"):
    return ColumnDescriptor(
        name=name,
        field_path=(name,),
        annotation=annotation,
        constraints=frozenset(),
        entity="Widget",
    )


@pytest.mark.parametrize(
    "annotation, expected",
    [
        (str, SemanticType.STRING),
        (Status, SemanticType.STRING),
        (int, SemanticType.INTEGER),
        (Level, SemanticType.INTEGER),
        (float, SemanticType.FLOAT),
        (bool, SemanticType.BOOLEAN),
        (datetime, SemanticType.TIMESTAMP),
        (dict[str, Any], SemanticType.JSON_MAP),
        (dict[str, JsonValue], SemanticType.JSON_MAP),
        (list[str], SemanticType.STRING_ARRAY),
        (Sequence[str], SemanticType.STRING_ARRAY),
        (tuple[str, ...], SemanticType.STRING_ARRAY),
        (Optional[int], SemanticType.INTEGER),
        (bool | None, SemanticType.BOOLEAN),
    ],
)
def test_classify_supported(annotation, expected):
    assert classify(annotation) is expected


@pytest.mark.parametrize(
    "annotation",
    [bytes, date, Decimal, list[int], set[str], dict[int, str], dict, list, int | str, tuple[str, int]],
)
def test_classify_unsupported_returns_none(annotation):
    assert classify(annotation) is None


@pytest.mark.parametrize(
    "annotation, ddl",
    [
        (str, "TEXT"),
        (int, "INTEGER"),
        (float, "REAL"),
        (bool, "BOOLEAN"),
        (datetime, "TIMESTAMP WITH TIME ZONE"),
        (dict[str, JsonValue], "JSONB"),
        (list[str], "TEXT[]"),
    ],
)
def test_column_ddl_type(annotation, ddl):
    assert column_ddl_type(_descriptor(annotation)) == ddl


@pytest.mark.parametrize(
    "annotation, name",
    [
        (str, "text"),
        (int, "int4"),
        (float, "float4"),
        (bool, "bool"),
        (datetime, "timestamptz"),
        (dict[str, Any], "jsonb"),
        (list[str], "_text"),
    ],
)
def test_udt_name(annotation, name):
    assert udt_name(_descriptor(annotation)) == name


def test_unsupported_type_names_field():
    with pytest.raises(UnsupportedFieldType) as exc_info:
        semantic_type(_descriptor(bytes))
    assert exc_info.value.field == "Widget.payload"


def test_unsupported_type_error_is_deterministic():
    messages = []
    for _ in range(2):
        with pytest.raises(UnsupportedFieldType) as exc_info:
            column_ddl_type(_descriptor(list[int]))
        messages.append(str(exc_info.value))
    assert messages[0] == messages[1]
