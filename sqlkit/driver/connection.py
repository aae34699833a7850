"""PEP 249 connection adapter.

DB-API 2.0 has no explicit prepare step. A :class:`PreparedStatement` is a
dedicated cursor bound to one SQL text, which lets drivers that cache
statements per cursor reuse the parsed statement.
"""

import threading
from typing import TYPE_CHECKING, Any, Final

from mypy_extensions import mypyc_attr

from sqlkit.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlkit.typing import ConnectionProtocol, CursorProtocol, Parameters

__all__ = ("DBAPIHandle", "DBAPITransaction", "PreparedStatement")

logger = get_logger("driver.connection")

BEGIN_SQL: Final = "BEGIN"


@mypyc_attr(allow_interpreted_subclasses=False)
class PreparedStatement:
    """A cursor dedicated to a single SQL text.

    Executions are serialized; rows are fetched completely before the cursor
    is released to the next caller.
    """

    __slots__ = ("_cursor", "_lock", "sql")

    def __init__(self, connection: "ConnectionProtocol", sql: str) -> None:
        self.sql = sql
        self._cursor: CursorProtocol = connection.cursor()
        self._lock = threading.Lock()

    def query(self, parameters: "Parameters") -> "tuple[list[str], list[tuple[Any, ...]]]":
        """Execute and fetch every row.

        Returns:
            The column names and the rows.
        """
        with self._lock:
            self._cursor.execute(self.sql, parameters)
            columns = [column[0] for column in self._cursor.description or ()]
            rows = [tuple(row) for row in self._cursor.fetchall()]
        return columns, rows

    def exec(self, parameters: "Parameters") -> "tuple[int, Any]":
        """Execute without fetching.

        Returns:
            The affected row count and the last inserted row id.
        """
        with self._lock:
            self._cursor.execute(self.sql, parameters)
            return self._cursor.rowcount, getattr(self._cursor, "lastrowid", None)

    def close(self) -> None:
        with self._lock:
            self._cursor.close()

    def __repr__(self) -> str:
        return f"PreparedStatement({self.sql!r})"


@mypyc_attr(allow_interpreted_subclasses=False)
class DBAPITransaction:
    """The physical transaction opened by :meth:`DBAPIHandle.begin`."""

    __slots__ = ("_handle",)

    def __init__(self, handle: "DBAPIHandle") -> None:
        self._handle = handle

    def prepare(self, sql: str) -> PreparedStatement:
        return self._handle.prepare(sql)

    def execute(self, sql: str) -> None:
        """Run a control statement such as ``SAVEPOINT sp_1``."""
        self._handle.execute(sql)

    def commit(self) -> None:
        self._handle.connection.commit()

    def rollback(self) -> None:
        self._handle.connection.rollback()


@mypyc_attr(allow_interpreted_subclasses=False)
class DBAPIHandle:
    """Wraps a DB-API connection for the execution facade.

    Args:
        connection: An open PEP 249 connection. For sqlite3 it must be opened
            with ``isolation_level=None`` so that ``BEGIN`` is only issued by
            :meth:`begin`.
    """

    __slots__ = ("connection",)

    def __init__(self, connection: "ConnectionProtocol") -> None:
        self.connection = connection

    def prepare(self, sql: str) -> PreparedStatement:
        return PreparedStatement(self.connection, sql)

    def execute(self, sql: str) -> None:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
        finally:
            cursor.close()

    def begin(self) -> DBAPITransaction:
        """Issue ``BEGIN`` and return the physical transaction."""
        self.execute(BEGIN_SQL)
        return DBAPITransaction(self)

    def ping(self) -> None:
        """Run ``SELECT 1`` to verify the connection is usable."""
        cursor = self.connection.cursor()
        try:
            cursor.execute("SELECT 1")
            cursor.fetchall()
        finally:
            cursor.close()

    def close(self) -> None:
        logger.debug("Closing connection")
        self.connection.close()
