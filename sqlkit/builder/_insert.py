"""INSERT statement builder."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from typing_extensions import Self

from sqlkit.builder._base import QueryBuilder, questions
from sqlkit.codec import RowCodec
from sqlkit.exceptions import SQLKitError, StatementInvalidError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlkit.codec import Encoder

__all__ = ("Insert", "insert")


@dataclass(frozen=True)
class Insert(QueryBuilder):
    """Builder for ``INSERT INTO table (cols) VALUES (?, ...), ...``.

    The first of :meth:`columns`, :meth:`row`, :meth:`value` or :meth:`record`
    fixes the column list. Rows added afterwards must name the same set of
    columns, in any order; their values are reordered to match.
    """

    _table: str = ""
    _columns: "Optional[tuple[str, ...]]" = None
    _rows: "tuple[tuple[Any, ...], ...]" = ()
    codec: "Encoder" = field(default_factory=RowCodec, kw_only=True, compare=False, repr=False)

    def into(self, table: str) -> Self:
        return self._copy(_table=table)

    def columns(self, *columns: str) -> Self:
        return self._copy(_columns=columns)

    def values(self, *values: Any) -> Self:
        """Append a row of values in column order."""
        return self._copy(_rows=(*self._rows, values))

    def value(self, column: str, value: Any) -> Self:
        """Append a single-column row."""
        return self.row((column,), (value,))

    def record(self, obj: Any, *fields: str) -> Self:
        """Append a row encoded from ``obj``, optionally restricted to ``fields``."""
        try:
            columns, values = self.codec.encode(obj, *fields)
        except SQLKitError as e:
            return self._fail(e)
        return self.row(columns, values)

    def row(self, columns: "Sequence[str]", values: "Sequence[Any]") -> Self:
        """Append a row given as parallel column and value sequences."""
        if len(columns) != len(values):
            msg = f"got {len(values)} values for {len(columns)} columns"
            return self._fail(StatementInvalidError(msg))
        if self._columns is None:
            return self._copy(_columns=tuple(columns), _rows=(*self._rows, tuple(values)))

        if len(columns) != len(self._columns) or set(columns) != set(self._columns):
            msg = f"columns {list(columns)} do not match {list(self._columns)}"
            return self._fail(StatementInvalidError(msg))
        by_column = dict(zip(columns, values))
        return self._copy(_rows=(*self._rows, tuple(by_column[column] for column in self._columns)))

    def _build(self) -> "tuple[str, list[Any]]":
        if not self._columns:
            msg = "insert has no columns"
            raise StatementInvalidError(msg)
        if not self._rows:
            msg = "insert has no values"
            raise StatementInvalidError(msg)

        width = len(self._columns)
        placeholders = questions(width)
        groups: list[str] = []
        values: list[Any] = []
        for row in self._rows:
            if len(row) != width:
                msg = f"got {len(row)} values for {width} columns"
                raise StatementInvalidError(msg)
            groups.append(placeholders)
            values.extend(row)
        sql = f"INSERT INTO {self._table} ({', '.join(self._columns)}) VALUES {', '.join(groups)}"
        return sql, values


def insert(table: str = "") -> Insert:
    return Insert(_table=table)
