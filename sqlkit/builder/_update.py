"""UPDATE statement builder."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from typing_extensions import Self

from sqlkit.builder._base import QueryBuilder
from sqlkit.builder._where import WhereClause, WhereMixin
from sqlkit.codec import RowCodec
from sqlkit.exceptions import SQLKitError, StatementInvalidError

if TYPE_CHECKING:
    from sqlkit.codec import Encoder

__all__ = ("Update", "update")


@dataclass(frozen=True)
class Update(WhereMixin, QueryBuilder):
    """Builder for ``UPDATE table SET a=?, b=? [WHERE ...]``.

    SET values are bound before WHERE values.
    """

    _table: str = ""
    _columns: "tuple[str, ...]" = ()
    _values: "tuple[Any, ...]" = ()
    _where: WhereClause = field(default_factory=WhereClause)
    codec: "Encoder" = field(default_factory=RowCodec, kw_only=True, compare=False, repr=False)

    def table(self, table: str) -> Self:
        return self._copy(_table=table)

    def columns(self, *columns: str) -> Self:
        return self._copy(_columns=(*self._columns, *columns))

    def values(self, *values: Any) -> Self:
        return self._copy(_values=(*self._values, *values))

    def value(self, column: str, value: Any) -> Self:
        """Set ``column`` to ``value``."""
        return self._copy(_columns=(*self._columns, column), _values=(*self._values, value))

    def record(self, obj: Any, *fields: str) -> Self:
        """Set every column encoded from ``obj``, optionally restricted to ``fields``."""
        try:
            columns, values = self.codec.encode(obj, *fields)
        except SQLKitError as e:
            return self._fail(e)
        return self._copy(_columns=(*self._columns, *columns), _values=(*self._values, *values))

    def _build(self) -> "tuple[str, list[Any]]":
        if not self._columns:
            msg = "update has no columns"
            raise StatementInvalidError(msg)
        if len(self._columns) != len(self._values):
            msg = f"got {len(self._values)} values for {len(self._columns)} columns"
            raise StatementInvalidError(msg)

        assignments = ", ".join(f"{column}=?" for column in self._columns)
        parts = ["UPDATE ", self._table, " SET ", assignments]
        values = list(self._values)
        where_sql, where_values = self._where.compile(self.dialect)
        if where_sql:
            parts.append(" WHERE ")
            parts.append(where_sql)
            values.extend(where_values)
        return "".join(parts), values


def update(table: str = "") -> Update:
    return Update(_table=table)
