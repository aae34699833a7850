"""Boolean expression trees for WHERE clauses."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlkit.builder._base import Parens, QueryBuilder, Raw, _Compiled, compile_neutral
from sqlkit.exceptions import StatementInvalidError
from sqlkit.utils.type_guards import is_renderable

if TYPE_CHECKING:
    from sqlkit.typing import Renderable

__all__ = (
    "Condition",
    "Operator",
    "eq",
    "eq_all",
    "eq_any",
    "gt",
    "gt_eq",
    "in_",
    "is_",
    "lt",
    "lt_eq",
    "not_eq",
)


class Operator(str, Enum):
    AND = "AND"
    OR = "OR"
    IN = "IN"
    EQ = "="
    NE = "!="
    IS = "IS"
    GT = ">"
    LT = "<"
    LTE = "<="
    GTE = ">="

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Condition(_Compiled):
    """A binary node ``(left OP right)``.

    Both sides are renderables; values are collected left to right, depth first.
    """

    left: "Renderable"
    operator: Operator
    right: "Renderable"

    def and_(self, other: "Renderable") -> "Condition":
        return Condition(self, Operator.AND, other)

    def or_(self, other: "Renderable") -> "Condition":
        return Condition(self, Operator.OR, other)

    __and__ = and_
    __or__ = or_

    def _compile(self) -> "tuple[str, list[Any]]":
        left, left_values = compile_neutral(self.left)
        right, right_values = compile_neutral(self.right)
        if not left or not right:
            msg = f"empty operand for {self.operator}"
            raise StatementInvalidError(msg)
        return f"({left} {self.operator} {right})", [*left_values, *right_values]


def _leaf(operator: Operator, column: str, value: Any) -> Condition:
    right: Renderable
    if isinstance(value, QueryBuilder):
        right = Parens(value)
    elif is_renderable(value):
        right = value
    else:
        right = Raw("?", (value,))
    return Condition(Raw(column), operator, right)


def eq(column: str, value: Any) -> Condition:
    """``(column = ?)``"""
    return _leaf(Operator.EQ, column, value)


def not_eq(column: str, value: Any) -> Condition:
    """``(column != ?)``"""
    return _leaf(Operator.NE, column, value)


def gt(column: str, value: Any) -> Condition:
    return _leaf(Operator.GT, column, value)


def gt_eq(column: str, value: Any) -> Condition:
    return _leaf(Operator.GTE, column, value)


def lt(column: str, value: Any) -> Condition:
    return _leaf(Operator.LT, column, value)


def lt_eq(column: str, value: Any) -> Condition:
    return _leaf(Operator.LTE, column, value)


def in_(column: str, value: Any) -> Condition:
    """``(column IN ?)``.

    A sequence value is expanded into one placeholder per element when the
    condition is used in a WHERE clause; a subquery is parenthesized.
    """
    return _leaf(Operator.IN, column, value)


def is_(column: str, value: Any) -> Condition:
    """``(column IS value)``, typically with :data:`~sqlkit.builder.NULL`."""
    return _leaf(Operator.IS, column, value)


def _chain(operator: Operator, mapping: "Mapping[str, Any]") -> Condition:
    condition: Condition = Condition(Raw(""), operator, Raw(""))
    for index, column in enumerate(sorted(mapping)):
        leaf = eq(column, mapping[column])
        condition = leaf if index == 0 else Condition(condition, operator, leaf)
    return condition


def eq_all(mapping: "Mapping[str, Any]") -> Condition:
    """``(key = ?)`` for every entry, joined with AND in sorted key order.

    An empty mapping yields a condition that fails to render.
    """
    return _chain(Operator.AND, mapping)


def eq_any(mapping: "Mapping[str, Any]") -> Condition:
    """``(key = ?)`` for every entry, joined with OR in sorted key order."""
    return _chain(Operator.OR, mapping)
