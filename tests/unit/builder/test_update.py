"""Unit tests for the UPDATE builder."""

from dataclasses import dataclass

from sqlkit.builder import Rendered, eq, update
from sqlkit.dialects import POSTGRES
from sqlkit.exceptions import StatementInvalidError


@dataclass
class Profile:
    name: str
    age: int


def test_update_value_with_where() -> None:
    rendered = update("users").value("name", "bob").where(eq("id", 1)).render()

    assert rendered == Rendered("UPDATE users SET name=? WHERE (id = ?)", ["bob", 1])


def test_update_postgres_set_values_precede_where_values() -> None:
    rendered = update("users").value("name", "bob").value("age", 3).where("id = ?", 1).with_dialect(POSTGRES).render()

    assert rendered == Rendered("UPDATE users SET name=$1, age=$2 WHERE (id = $3)", ["bob", 3, 1])


def test_update_columns_and_values() -> None:
    rendered = update().table("users").columns("a", "b").values(1, 2).render()

    assert rendered == Rendered("UPDATE users SET a=?, b=?", [1, 2])


def test_update_count_mismatch_is_invalid() -> None:
    rendered = update("users").columns("a", "b").values(1).render()

    assert isinstance(rendered.error, StatementInvalidError)


def test_update_without_columns_is_invalid() -> None:
    assert isinstance(update("users").where("id = ?", 1).render().error, StatementInvalidError)


def test_update_record() -> None:
    rendered = update("users").record(Profile(name="al", age=30)).where("id IN ?", [1, 2]).render()

    assert rendered == Rendered("UPDATE users SET name=?, age=? WHERE (id IN (?, ?))", ["al", 30, 1, 2])


def test_update_record_restricted_fields() -> None:
    rendered = update("users").record(Profile(name="al", age=30), "age").render()

    assert rendered == Rendered("UPDATE users SET age=?", [30])
