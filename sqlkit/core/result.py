"""Statement execution results."""

from typing import TYPE_CHECKING, Any, Optional, Union, overload

from mypy_extensions import mypyc_attr

from sqlkit.exceptions import NotAQueryError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from sqlkit.codec import Decoder
    from sqlkit.typing import ModelT

__all__ = ("Result",)


@mypyc_attr(allow_interpreted_subclasses=False)
class Result:
    """The outcome of :meth:`~sqlkit.Database.query` or :meth:`~sqlkit.Database.exec`.

    Query results hold the fetched rows and their column names. Exec results
    hold the affected row count and the driver's last inserted id.

    Args:
        decoder: Row decoder used by :meth:`decode`.
        columns: Column names of a query result.
        rows: Fetched rows of a query result.
        rows_affected: Row count reported by the driver, ``-1`` if unknown.
        last_id: ``lastrowid`` reported by the driver.
        is_query: Whether the result came from ``query``.
    """

    __slots__ = ("_decoder", "columns", "is_query", "last_id", "rows", "rows_affected")

    def __init__(
        self,
        decoder: "Decoder",
        columns: "Sequence[str]" = (),
        rows: "Optional[list[tuple[Any, ...]]]" = None,
        rows_affected: int = -1,
        last_id: Optional[Union[int, str]] = None,
        is_query: bool = False,
    ) -> None:
        self._decoder = decoder
        self.columns = list(columns)
        self.rows = rows if rows is not None else []
        self.rows_affected = rows_affected
        self.last_id = last_id
        self.is_query = is_query

    def __iter__(self) -> "Iterator[tuple[Any, ...]]":
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    @overload
    def decode(self, schema_type: "type[ModelT]") -> "ModelT": ...
    @overload
    def decode(self, schema_type: Any) -> Any: ...

    def decode(self, schema_type: Any) -> Any:
        """Decode the rows into ``schema_type``.

        ``list[T]`` returns every row; other targets return the first row.

        Raises:
            NotAQueryError: If the result came from ``exec``.
        """
        if not self.is_query:
            raise NotAQueryError
        return self._decoder.decode(schema_type, self.columns, self.rows)

    def one(self) -> "dict[str, Any]":
        """Return the first row as a dict."""
        return self.decode(dict)  # type: ignore[no-any-return]

    def all(self) -> "list[dict[str, Any]]":
        """Return every row as a dict."""
        return self.decode(list[dict])  # type: ignore[no-any-return]

    def scalar(self) -> Any:
        """Return the single column of the first row."""
        return self.decode(Any)

    def __repr__(self) -> str:
        if self.is_query:
            return f"Result(columns={self.columns!r}, rows={len(self.rows)})"
        return f"Result(rows_affected={self.rows_affected}, last_id={self.last_id!r})"
