"""Tests for entity_repo/domain/models: Entity, column(), WhereClause, Operator."""

from datetime import datetime, timedelta, timezone
from typing import Annotated

import pytest
from pydantic import ValidationError

from entity_repo.domain.errors import UnsupportedOperator
from entity_repo.domain.models import (
    ColumnTag,
    Constraint,
    Entity,
    HasBaseFields,
    Operator,
    WhereClause,
    column,
)


class Ticket(Entity):
    status: Annotated[str, column("status", Constraint.NOT_NULL)]
    priority: Annotated[int, column("priority")]


# --- column() ---

def test_column_accepts_constraint_tokens():
    tag = column("email", "unique", "notnull")
    assert tag.constraints == frozenset({Constraint.UNIQUE, Constraint.NOT_NULL})


def test_column_without_constraints_has_empty_set():
    assert column("name").constraints == frozenset()


def test_column_primary_key_flag():
    assert column("id", Constraint.PRIMARY_KEY).primary_key is True


def test_column_rejects_unknown_constraint_token():
    with pytest.raises(ValueError):
        column("name", "indexed")


def test_column_rejects_empty_name():
    with pytest.raises(ValueError):
        column("  ")


def test_column_tag_is_kept_in_field_metadata():
    metadata = Ticket.model_fields["status"].metadata
    assert ColumnTag("status", frozenset({Constraint.NOT_NULL})) in metadata


# --- Entity ---

def test_entity_requires_id():
    with pytest.raises(ValidationError):
        Ticket(status="open", priority=1)


def test_entity_created_at_defaults_to_utc_now():
    t = Ticket(id="t-1", status="open", priority=1)
    assert t.created_at.tzinfo == timezone.utc


def test_entity_naive_created_at_is_taken_as_utc():
    t = Ticket(id="t-1", status="open", priority=1, created_at=datetime(2024, 1, 1))
    assert t.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_entity_aware_created_at_is_kept():
    plus_two = timezone(timedelta(hours=2))
    t = Ticket(id="t-1", status="open", priority=1, created_at=datetime(2024, 1, 1, tzinfo=plus_two))
    assert t.created_at.tzinfo == plus_two


def test_entity_metadata_and_tags_default_empty():
    t = Ticket(id="t-1", status="open", priority=1)
    assert t.metadata == {} and t.tags == []


def test_entity_metadata_accepts_nested_values():
    t = Ticket(
        id="t-1",
        status="open",
        priority=1,
        metadata={"source": "email", "score": 0.5, "flags": [True, None], "nested": {"n": 1}},
    )
    assert t.metadata["nested"] == {"n": 1}


def test_entity_metadata_rejects_non_json_values():
    with pytest.raises(ValidationError):
        Ticket(id="t-1", status="open", priority=1, metadata={"when": object()})


def test_entity_base_fields_come_first():
    assert list(Ticket.model_fields)[:4] == ["id", "created_at", "metadata", "tags"]


def test_entity_satisfies_base_fields_protocol():
    t = Ticket(id="t-1", status="open", priority=1, created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    assert isinstance(t, HasBaseFields)


# --- Operator ---

@pytest.mark.parametrize(
    "token, expected",
    [
        ("=", Operator.EQ),
        ("==", Operator.EQ),
        ("!=", Operator.NE),
        ("<>", Operator.NE),
        ("≠", Operator.NE),
        (">", Operator.GT),
        ("<", Operator.LT),
        (Operator.GT, Operator.GT),
    ],
)
def test_operator_parse(token, expected):
    assert Operator.parse(token) is expected


def test_operator_parse_rejects_unknown_token():
    with pytest.raises(UnsupportedOperator):
        Operator.parse(">=")


def test_unsupported_operator_is_value_error():
    assert issubclass(UnsupportedOperator, ValueError)


# --- WhereClause ---

def test_where_clause_normalises_double_equals():
    assert WhereClause.of("status", "==", "open").operator is Operator.EQ


def test_where_clause_keyword_construction():
    clause = WhereClause(field="priority", operator=">", value=2)
    assert (clause.field, clause.operator, clause.value) == ("priority", Operator.GT, 2)


def test_where_clause_rejects_unknown_operator():
    with pytest.raises(ValidationError):
        WhereClause.of("priority", "LIKE", "x")


def test_where_clause_is_frozen():
    clause = WhereClause.of("status", "=", "open")
    with pytest.raises(ValidationError):
        clause.value = "closed"
