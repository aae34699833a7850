import importlib
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar, Union

from sqlkit.builder import Delete, Insert, QueryBuilder, Raw, Select, Update, raw
from sqlkit.config import DatabaseConfig, with_dialect
from sqlkit.core.cache import StatementCache
from sqlkit.core.result import Result
from sqlkit.core.scope import BACKGROUND
from sqlkit.dialects import GENERIC, dialect_for_driver
from sqlkit.driver.connection import DBAPIHandle
from sqlkit.driver.transaction import SavepointNamer, Transaction
from sqlkit.exceptions import (
    CloseError,
    ImproperConfigurationError,
    MissingDependencyError,
    NestedTransactionError,
    RollbackError,
)
from sqlkit.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlkit.config import Option
    from sqlkit.core.scope import ExecutionScope
    from sqlkit.dialects import Dialect
    from sqlkit.typing import ConnectionProtocol, Renderable

__all__ = ("Database",)

logger = get_logger()

T = TypeVar("T")

_DRIVER_CONNECT_DEFAULTS: "dict[str, dict[str, Any]]" = {
    # BEGIN is issued explicitly and observers roll back from their own thread.
    "sqlite3": {"isolation_level": None, "check_same_thread": False},
}


class Database:
    """Execution facade over one DB-API connection.

    Statements run through a per-scope statement cache: the connection's own
    cache outside transactions, the root transaction's cache inside them.

    Args:
        connection: An open PEP 249 connection.
        *options: Functional options from :mod:`sqlkit.config`.
    """

    __slots__ = ("_cache", "_closed", "_config", "_handle", "_lock", "_savepoint_name", "dialect")

    def __init__(self, connection: "ConnectionProtocol", *options: "Option") -> None:
        self._config = DatabaseConfig()
        for option in options:
            option(self._config)
        self.dialect: Dialect = self._config.dialect or GENERIC
        self._handle = DBAPIHandle(connection)
        self._cache = StatementCache(self._handle.prepare)
        self._lock = threading.Lock()
        self._closed = False
        self._savepoint_name = SavepointNamer()

    @classmethod
    def open(cls, driver: str, dsn: str, *options: "Option", **connect_kwargs: Any) -> "Database":
        """Connect with the DB-API module named ``driver`` and verify the connection.

        The dialect is inferred from the driver name, or from the module's
        ``paramstyle``, unless an option sets one.

        Args:
            driver: Importable DB-API module name, e.g. ``"sqlite3"``.
            dsn: First positional argument of the module's ``connect``.
            *options: Functional options from :mod:`sqlkit.config`.
            **connect_kwargs: Passed to ``connect``.

        Raises:
            MissingDependencyError: If ``driver`` cannot be imported.
            ImproperConfigurationError: If ``driver`` has no ``connect``.
        """
        try:
            module = importlib.import_module(driver)
        except ImportError as e:
            raise MissingDependencyError(driver) from e
        connect = getattr(module, "connect", None)
        if not callable(connect):
            msg = f"{driver!r} is not a DB-API module: it has no connect()"
            raise ImproperConfigurationError(msg)

        for key, value in _DRIVER_CONNECT_DEFAULTS.get(driver, {}).items():
            connect_kwargs.setdefault(key, value)
        connection = connect(dsn, **connect_kwargs)
        try:
            DBAPIHandle(connection).ping()
        except Exception:
            connection.close()
            raise

        dialect = dialect_for_driver(driver, getattr(module, "paramstyle", None))
        if dialect is not None:
            options = (with_dialect(dialect), *options)
        database = cls(connection, *options)
        logger.debug("Opened database", extra={"extra_fields": {"driver": driver, "dialect": database.dialect.name}})
        return database

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    def select(self, *columns: str) -> Select:
        return Select(_columns=columns, dialect=self.dialect)

    def insert(self, table: str = "") -> Insert:
        return Insert(_table=table, dialect=self.dialect, codec=self._config.encoder)

    def update(self, table: str = "") -> Update:
        return Update(_table=table, dialect=self.dialect, codec=self._config.encoder)

    def delete(self, table: str = "") -> Delete:
        return Delete(_table=table, dialect=self.dialect)

    raw = staticmethod(raw)

    def query(self, tx: "Optional[Transaction]", statement: "Union[Renderable, str]") -> Result:
        """Run a statement that returns rows.

        Builders are rendered for the database's dialect whatever dialect
        they were built with. The ``?`` placeholders of raw text are rebound
        the same way.

        Args:
            tx: Transaction to run in, or ``None`` for the connection itself.
            statement: A builder, a :class:`~sqlkit.builder.Raw` or SQL text.

        Raises:
            StatementInvalidError: If the statement fails to render. Nothing
                is sent to the driver.
        """
        return self._run(tx, statement, is_query=True)

    def exec(self, tx: "Optional[Transaction]", statement: "Union[Renderable, str]") -> Result:
        """Run a statement for its side effects."""
        return self._run(tx, statement, is_query=False)

    def _run(self, tx: "Optional[Transaction]", statement: "Union[Renderable, str]", is_query: bool) -> Result:
        if isinstance(statement, str):
            statement = Raw(statement)
        elif isinstance(statement, QueryBuilder):
            statement = statement.with_dialect(self.dialect)
        try:
            sql, values = statement.render().unwrap()
            if not isinstance(statement, QueryBuilder):
                sql = self.dialect.rebind(sql)
            if tx is not None:
                tx.ensure_active()
                cache = tx.cache
            else:
                cache = self._cache
            prepared = cache.get(sql)
            parameters = self.dialect.bind_parameters(values)
            if is_query:
                columns, rows = prepared.query(parameters)  # type: ignore[attr-defined]
                return Result(self._config.decoder, columns, rows, is_query=True)
            rows_affected, last_id = prepared.exec(parameters)  # type: ignore[attr-defined]
            return Result(self._config.decoder, rows_affected=rows_affected, last_id=last_id)
        finally:
            self._config.logger(statement)

    def begin(self, parent: "Optional[Transaction]" = None, scope: "Optional[ExecutionScope]" = None) -> Transaction:
        """Begin a transaction, or a savepoint inside ``parent``.

        Args:
            parent: Active transaction to nest in.
            scope: Cancellation scope. Savepoints default to their parent's.

        Raises:
            NestedTransactionError: If ``parent`` is given and savepoints are disabled.
            TransactionCancelledError: If ``scope`` is already cancelled.
        """
        if parent is not None:
            if not self._config.savepoints_enabled:
                raise NestedTransactionError
            return parent.nested(self._savepoint_name(), scope)

        scope = scope if scope is not None else BACKGROUND
        scope.raise_if_cancelled()
        try:
            physical = self._handle.begin()
        finally:
            self._config.logger(raw("BEGIN"))
        return Transaction(physical, StatementCache(physical.prepare), scope=scope, logger=self._config.logger)

    def tx(
        self,
        fn: "Callable[[Transaction], T]",
        parent: "Optional[Transaction]" = None,
        scope: "Optional[ExecutionScope]" = None,
    ) -> T:
        """Run ``fn`` in a new transaction, committing on return.

        If ``fn`` raises, the transaction is rolled back and the exception
        re-raised.

        Raises:
            RollbackError: If the rollback fails too; chained from the
                original exception.
        """
        tx = self.begin(parent, scope)
        try:
            result = fn(tx)
        except Exception as e:
            try:
                tx.rollback()
            except Exception as rollback_error:
                raise RollbackError(e, rollback_error) from e
            raise
        tx.commit()
        return result

    @contextmanager
    def transaction(
        self, parent: "Optional[Transaction]" = None, scope: "Optional[ExecutionScope]" = None
    ) -> "Iterator[Transaction]":
        """Context manager form of :meth:`tx`."""
        with self.begin(parent, scope) as tx:
            yield tx

    def close(self) -> None:
        """Close the cached statements, then the connection.

        Only the first call does anything.

        Raises:
            CloseError: With every failure encountered.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            errors: list[BaseException] = []
            try:
                self._cache.close()
            except CloseError as e:
                errors.extend(e.errors)
            try:
                self._handle.close()
            except Exception as e:
                errors.append(e)
        if errors:
            raise CloseError(errors) from errors[-1]

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Database(dialect={self.dialect.name!r}, closed={self._closed})"

