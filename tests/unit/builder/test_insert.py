"""Unit tests for the INSERT builder."""

from dataclasses import dataclass, field

import msgspec
import pytest

from sqlkit.builder import Insert, Rendered, insert
from sqlkit.codec import RowCodec
from sqlkit.dialects import POSTGRES
from sqlkit.exceptions import DuplicateFieldError, EncodeError, StatementInvalidError


@dataclass
class User:
    ID: int
    Name: str
    email: str = field(default="", metadata={"sql": "email_address"})
    password: str = field(default="", metadata={"sql": "-"})


class Account(msgspec.Struct):
    id: int
    display_name: str = msgspec.field(name="display")


def test_insert_multiple_rows() -> None:
    rendered = insert("users").columns("id", "name").values(1, "a").values(2, "b").render()

    assert rendered == Rendered("INSERT INTO users (id, name) VALUES (?, ?), (?, ?)", [1, "a", 2, "b"])


def test_insert_postgres() -> None:
    rendered = insert().into("users").columns("id", "name").values(1, "a").values(2, "b").with_dialect(POSTGRES)

    assert rendered.render().sql == "INSERT INTO users (id, name) VALUES ($1, $2), ($3, $4)"


def test_value_appends_single_column_row() -> None:
    assert insert("users").value("id", 1).render() == Rendered("INSERT INTO users (id) VALUES (?)", [1])


def test_value_rows_must_share_columns() -> None:
    rendered = insert("users").value("id", 1).value("name", "a").render()

    assert isinstance(rendered.error, StatementInvalidError)


def test_rows_are_reordered_to_established_columns() -> None:
    rendered = insert("users").row(("id", "name"), (1, "a")).row(("name", "id"), ("b", 2)).render()

    assert rendered == Rendered("INSERT INTO users (id, name) VALUES (?, ?), (?, ?)", [1, "a", 2, "b"])


def test_disagreeing_column_sets_are_invalid() -> None:
    rendered = insert("users").row(("id", "name"), (1, "a")).row(("id", "email"), (2, "e")).render()

    assert isinstance(rendered.error, StatementInvalidError)
    assert "do not match" in str(rendered.error)


def test_row_arity_mismatch_is_invalid() -> None:
    rendered = insert("users").row(("id", "name"), (1,)).render()

    assert isinstance(rendered.error, StatementInvalidError)


def test_values_arity_mismatch_is_invalid() -> None:
    rendered = insert("users").columns("id", "name").values(1).render()

    assert isinstance(rendered.error, StatementInvalidError)
    assert "got 1 values for 2 columns" in str(rendered.error)


@pytest.mark.parametrize(
    "statement",
    [
        pytest.param(insert("users"), id="empty"),
        pytest.param(insert("users").columns("id"), id="no-rows"),
        pytest.param(insert("users").values(1), id="no-columns"),
    ],
)
def test_incomplete_insert_is_invalid(statement: object) -> None:
    assert isinstance(statement.render().error, StatementInvalidError)  # type: ignore[attr-defined]


def test_record_dataclass() -> None:
    rendered = insert("users").record(User(ID=1, Name="alice", email="a@example.com", password="secret")).render()

    assert rendered == Rendered(
        "INSERT INTO users (id, name, email_address) VALUES (?, ?, ?)", [1, "alice", "a@example.com"]
    )


def test_record_restricted_fields() -> None:
    rendered = insert("users").record(User(ID=1, Name="alice"), "id", "name").render()

    assert rendered == Rendered("INSERT INTO users (id, name) VALUES (?, ?)", [1, "alice"])


def test_record_struct() -> None:
    rendered = insert("accounts").record(Account(id=3, display_name="Al")).render()

    assert rendered == Rendered("INSERT INTO accounts (id, display) VALUES (?, ?)", [3, "Al"])


def test_record_mapping_rows() -> None:
    statement = insert("users").record({"id": 1, "name": "a"}).record({"name": "b", "id": 2})

    assert statement.render() == Rendered("INSERT INTO users (id, name) VALUES (?, ?), (?, ?)", [1, "a", 2, "b"])


def test_record_unsupported_type() -> None:
    rendered = insert("users").record(42).render()

    assert isinstance(rendered.error, EncodeError)


@dataclass
class Twice:
    a: int
    b: int = field(default=0, metadata={"sql": "a"})


def test_record_duplicate_columns() -> None:
    assert isinstance(insert("t").record(Twice(1, 2)).render().error, DuplicateFieldError)


def test_record_duplicate_columns_unsafe() -> None:
    unsafe = Insert(_table="t", codec=RowCodec(unsafe=True)).record(Twice(1, 2))

    assert unsafe.render() == Rendered("INSERT INTO t (a) VALUES (?)", [1])
