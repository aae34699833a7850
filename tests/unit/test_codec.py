"""Unit tests for the row codec."""

from dataclasses import dataclass, field
from typing import Any, Optional

import msgspec
import pytest

from sqlkit.codec import FieldMapper, RowCodec
from sqlkit.exceptions import (
    DecodeError,
    DuplicateFieldError,
    EncodeError,
    MissingDestinationError,
    NoRowsError,
    TooManyColumnsError,
)


@dataclass
class User:
    id: int
    name: str = "anonymous"
    email: Optional[str] = field(default=None, metadata={"sql": "email_address"})


class Account(msgspec.Struct):
    id: int
    display_name: str = msgspec.field(name="display")
    active: bool = True


@dataclass
class Clash:
    a: int
    b: int = field(default=0, metadata={"sql": "a"})


codec = RowCodec()


def test_encode_dataclass() -> None:
    assert codec.encode(User(1, "al", "al@example.com")) == (["id", "name", "email_address"], [1, "al", "al@example.com"])


def test_encode_restricted_fields() -> None:
    assert codec.encode(User(1, "al"), "name") == (["name"], ["al"])


def test_encode_struct_uses_renamed_fields() -> None:
    assert codec.encode(Account(id=2, display_name="Al")) == (["id", "display", "active"], [2, "Al", True])


def test_encode_mapping() -> None:
    assert codec.encode({"id": 1, "Name": "x"}) == (["id", "Name"], [1, "x"])


def test_encode_custom_name_func() -> None:
    upper = RowCodec(FieldMapper(name_func=str.upper))

    assert upper.encode(User(1, "al"))[0] == ["ID", "NAME", "email_address"]


def test_encode_custom_tag() -> None:
    @dataclass
    class Tagged:
        a: int = field(default=0, metadata={"db": "alpha", "sql": "ignored"})

    assert RowCodec(FieldMapper(tag="db")).encode(Tagged(1)) == (["alpha"], [1])


def test_encode_duplicate_column() -> None:
    with pytest.raises(DuplicateFieldError):
        codec.encode(Clash(1, 2))


def test_encode_duplicate_column_unsafe_keeps_first() -> None:
    assert RowCodec(unsafe=True).encode(Clash(1, 2)) == (["a"], [1])


@pytest.mark.parametrize("value", [pytest.param(42, id="int"), pytest.param(User, id="class")])
def test_encode_unsupported(value: Any) -> None:
    with pytest.raises(EncodeError):
        codec.encode(value)


def test_decode_list_of_dataclasses() -> None:
    users = codec.decode(list[User], ["id", "name"], [(1, "a"), (2, "b")])

    assert users == [User(1, "a"), User(2, "b")]


def test_decode_single_dataclass_uses_first_row() -> None:
    assert codec.decode(User, ["id", "email_address"], [(1, "x@example.com"), (2, None)]) == User(
        1, email="x@example.com"
    )


def test_decode_null_keeps_field_default() -> None:
    assert codec.decode(User, ["id", "name"], [(1, None)]) == User(1, "anonymous")


def test_decode_struct() -> None:
    account = codec.decode(Account, ["id", "display", "active"], [(1, "Al", False)])

    assert account == Account(id=1, display_name="Al", active=False)


def test_decode_no_rows() -> None:
    with pytest.raises(NoRowsError):
        codec.decode(User, ["id"], [])


def test_decode_empty_list() -> None:
    assert codec.decode(list[User], ["id"], []) == []


def test_decode_missing_destination() -> None:
    with pytest.raises(MissingDestinationError):
        codec.decode(User, ["id", "unknown"], [(1, "x")])


def test_decode_missing_destination_unsafe() -> None:
    assert RowCodec(unsafe=True).decode(User, ["id", "unknown"], [(1, "x")]) == User(1)


def test_decode_conversion_failure() -> None:
    with pytest.raises(DecodeError):
        codec.decode(User, ["id"], [("not a number",)])


def test_decode_scalar() -> None:
    assert codec.decode(int, ["count"], [(3,)]) == 3
    assert codec.decode(list[int], ["id"], [(1,), (2,)]) == [1, 2]
    assert codec.decode(Any, ["name"], [("x",)]) == "x"
    assert codec.decode(Optional[int], ["id"], [(None,)]) is None


def test_decode_scalar_too_many_columns() -> None:
    with pytest.raises(TooManyColumnsError):
        codec.decode(int, ["a", "b"], [(1, 2)])


def test_decode_list_checks_columns_before_rows() -> None:
    with pytest.raises(TooManyColumnsError):
        codec.decode(list[int], ["a", "b"], [])


def test_decode_dicts_and_tuples() -> None:
    assert codec.decode(dict, ["a", "b"], [(1, 2)]) == {"a": 1, "b": 2}
    assert codec.decode(list[dict[str, Any]], ["a"], [(1,), (2,)]) == [{"a": 1}, {"a": 2}]
    assert codec.decode(tuple, ["a", "b"], [(1, 2)]) == (1, 2)
