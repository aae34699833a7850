"""WHERE clause accumulation and IN-list expansion."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Union

from typing_extensions import Self

from sqlkit.builder._base import _Compiled, compile_neutral, questions
from sqlkit.builder._expressions import Condition, Operator
from sqlkit.dialects import GENERIC
from sqlkit.exceptions import StatementInvalidError
from sqlkit.utils.type_guards import is_expandable_argument, is_renderable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlkit.dialects import Dialect
    from sqlkit.typing import Renderable

__all__ = ("Fragment", "WhereClause", "WhereMixin", "expand_in_arguments")


@dataclass(frozen=True)
class Fragment(_Compiled):
    """A caller-written condition such as ``"name = ?"``, rendered in parentheses."""

    sql: str
    values: "tuple[Any, ...]" = ()

    def _compile(self) -> "tuple[str, list[Any]]":
        return f"({self.sql})", list(self.values)


def expand_in_arguments(sql: str, values: "Sequence[Any]", dialect: "Dialect" = GENERIC) -> "tuple[str, list[Any]]":
    """Expand sequence arguments into placeholder lists.

    The ``?`` matching a list, tuple or set argument becomes ``(?, ?, ...)``
    with one placeholder per element, and the elements are spliced into the
    value list in its place. ``"x IN ?"`` with ``[1, 2]`` becomes
    ``"x IN (?, ?)"`` with values ``1, 2``. Placeholders are located with
    ``dialect``'s quoting rules.

    Raises:
        StatementInvalidError: If no placeholder exists for a sequence argument.
    """
    if not any(is_expandable_argument(value) for value in values):
        return sql, list(values)

    positions = dialect.placeholder_positions(sql)
    parts: list[str] = []
    expanded: list[Any] = []
    last = 0
    for index, value in enumerate(values):
        if not is_expandable_argument(value):
            expanded.append(value)
            continue
        if index >= len(positions):
            msg = f"could not find matching placeholder at index {index}"
            raise StatementInvalidError(msg, sql=sql)
        items = list(value)
        position = positions[index]
        parts.append(sql[last:position])
        parts.append(questions(len(items)))
        last = position + 1
        expanded.extend(items)
    parts.append(sql[last:])
    return "".join(parts), expanded


@dataclass(frozen=True)
class WhereClause:
    """Conditions added with ``where``/``or_where``, folded left to right."""

    condition: "Optional[Renderable]" = None

    def add(self, operator: Operator, where: "Union[str, Renderable]", values: "tuple[Any, ...]") -> "WhereClause":
        """Return a clause with ``where`` joined by ``operator``.

        Raises:
            StatementInvalidError: If ``where`` is neither text nor renderable, or
                if a renderable is given extra values.
        """
        node: Renderable
        if isinstance(where, str):
            node = Fragment(where, values)
        elif is_renderable(where):
            if values:
                msg = "values can only be bound to a text condition"
                raise StatementInvalidError(msg)
            node = where
        else:
            msg = f"unsupported WHERE condition type: {type(where).__name__}"
            raise StatementInvalidError(msg)

        if self.condition is None:
            return WhereClause(node)
        return WhereClause(Condition(self.condition, operator, node))

    def compile(self, dialect: "Dialect" = GENERIC) -> "tuple[str, list[Any]]":
        """Render the folded condition, with IN arguments expanded.

        Returns ``("", [])`` when no condition was added.
        """
        if self.condition is None:
            return "", []
        sql, values = compile_neutral(self.condition)
        return expand_in_arguments(sql, values, dialect)


class WhereMixin:
    """``where``/``or_where`` for builders holding a ``_where`` clause."""

    __slots__ = ()

    _where: WhereClause

    def where(self, where: "Union[str, Renderable]", *values: Any) -> Self:
        """Add a condition joined with AND.

        ``where`` is either text with ``?`` placeholders for ``values`` or a
        condition built with :func:`~sqlkit.builder.eq` and friends.
        """
        return self._add_where(Operator.AND, where, values)

    def or_where(self, where: "Union[str, Renderable]", *values: Any) -> Self:
        """Add a condition joined with OR."""
        return self._add_where(Operator.OR, where, values)

    def _add_where(self, operator: Operator, where: "Union[str, Renderable]", values: "tuple[Any, ...]") -> Self:
        try:
            clause = self._where.add(operator, where, values)
        except StatementInvalidError as e:
            return self._fail(e)  # type: ignore[attr-defined]
        return self._copy(_where=clause)  # type: ignore[attr-defined]
