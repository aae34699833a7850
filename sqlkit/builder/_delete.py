"""DELETE statement builder."""

from dataclasses import dataclass, field
from typing import Any

from typing_extensions import Self

from sqlkit.builder._base import QueryBuilder
from sqlkit.builder._select import Join, JoinMixin
from sqlkit.builder._where import WhereClause, WhereMixin

__all__ = ("Delete", "delete")


@dataclass(frozen=True)
class Delete(WhereMixin, JoinMixin, QueryBuilder):
    """Builder for ``DELETE FROM table [JOIN ...] [WHERE ...]``.

    WHERE conditions follow the same rules as :class:`~sqlkit.builder.Select`.
    """

    _table: str = ""
    _joins: "tuple[Join, ...]" = ()
    _where: WhereClause = field(default_factory=WhereClause)

    def from_(self, table: str) -> Self:
        return self._copy(_table=table)

    def _build(self) -> "tuple[str, list[Any]]":
        parts = ["DELETE FROM ", self._table]
        join_sql, values = self._join_sql()
        for clause in join_sql:
            parts.append(" ")
            parts.append(clause)
        where_sql, where_values = self._where.compile(self.dialect)
        if where_sql:
            parts.append(" WHERE ")
            parts.append(where_sql)
            values.extend(where_values)
        return "".join(parts), values


def delete() -> Delete:
    return Delete()
