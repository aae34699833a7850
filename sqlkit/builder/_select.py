"""SELECT statement builder."""

from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional

from typing_extensions import Self

from sqlkit.builder._base import QueryBuilder
from sqlkit.builder._where import WhereClause, WhereMixin
from sqlkit.exceptions import StatementInvalidError

__all__ = ("Join", "JoinMixin", "Select", "select")


class Join(NamedTuple):
    kind: str
    table: str
    on: str
    values: "tuple[Any, ...]" = ()

    def sql(self) -> str:
        return f"{self.kind} JOIN {self.table} ON {self.on}"


class JoinMixin:
    """Join helpers for builders holding a ``_joins`` tuple."""

    __slots__ = ()

    _joins: "tuple[Join, ...]"

    def join(self, kind: str, table: str, on: str, *values: Any) -> Self:
        """Add a ``<kind> JOIN table ON on`` clause, binding ``values`` to its placeholders."""
        return self._copy(_joins=(*self._joins, Join(kind, table, on, values)))  # type: ignore[attr-defined]

    def inner_join(self, table: str, on: str, *values: Any) -> Self:
        return self.join("INNER", table, on, *values)

    def left_join(self, table: str, on: str, *values: Any) -> Self:
        return self.join("LEFT", table, on, *values)

    def right_join(self, table: str, on: str, *values: Any) -> Self:
        return self.join("RIGHT", table, on, *values)

    def _join_sql(self) -> "tuple[list[str], list[Any]]":
        values: list[Any] = []
        for join in self._joins:
            values.extend(join.values)
        return [join.sql() for join in self._joins], values


def _check_count(name: str, value: Any) -> Optional[StatementInvalidError]:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return StatementInvalidError(f"{name} must be a non-negative integer, got {value!r}")
    return None


@dataclass(frozen=True)
class Select(WhereMixin, JoinMixin, QueryBuilder):
    """Builder for SELECT statements.

    Renders as
    ``SELECT cols FROM table [JOIN ...] [WHERE ...] [GROUP BY ...] [ORDER BY ...] [LIMIT n] [OFFSET n]``.
    """

    _columns: "tuple[str, ...]" = ()
    _table: str = ""
    _joins: "tuple[Join, ...]" = ()
    _where: WhereClause = field(default_factory=WhereClause)
    _group_by: "tuple[str, ...]" = ()
    _order_by: "tuple[str, ...]" = ()
    _limit: Optional[int] = None
    _offset: Optional[int] = None

    def select(self, *columns: str) -> Self:
        """Replace the selected columns."""
        return self._copy(_columns=columns)

    def from_(self, table: str) -> Self:
        return self._copy(_table=table)

    def group_by(self, *columns: str) -> Self:
        return self._copy(_group_by=columns)

    def order_by(self, *columns: str) -> Self:
        return self._copy(_order_by=columns)

    def limit(self, limit: int) -> Self:
        """Set the LIMIT, rendered as a decimal literal."""
        error = _check_count("limit", limit)
        if error is not None:
            return self._fail(error)
        return self._copy(_limit=limit)

    def offset(self, offset: int) -> Self:
        """Set the OFFSET, rendered as a decimal literal."""
        error = _check_count("offset", offset)
        if error is not None:
            return self._fail(error)
        return self._copy(_offset=offset)

    def _build(self) -> "tuple[str, list[Any]]":
        parts = ["SELECT ", ",".join(self._columns), " FROM ", self._table]
        join_sql, values = self._join_sql()
        for clause in join_sql:
            parts.append(" ")
            parts.append(clause)

        where_sql, where_values = self._where.compile(self.dialect)
        if where_sql:
            parts.append(" WHERE ")
            parts.append(where_sql)
            values.extend(where_values)
        if self._group_by:
            parts.append(" GROUP BY ")
            parts.append(", ".join(self._group_by))
        if self._order_by:
            parts.append(" ORDER BY ")
            parts.append(", ".join(self._order_by))
        if self._limit is not None:
            parts.append(f" LIMIT {self._limit:d}")
        if self._offset is not None:
            parts.append(f" OFFSET {self._offset:d}")
        return "".join(parts), values


def select(*columns: str) -> Select:
    """Start a SELECT of ``columns`` with the generic dialect."""
    return Select(_columns=columns)
