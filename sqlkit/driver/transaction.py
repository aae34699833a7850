"""Transactions, savepoints and cancellation-driven rollback.

A root :class:`Transaction` owns the physical transaction and a statement
cache bound to it. Nested transactions are emulated with savepoints: a child
shares its root's physical transaction and cache and commits with
``RELEASE SAVEPOINT`` or rolls back with ``ROLLBACK TO SAVEPOINT``.

Each transaction reaches exactly one terminal state, and a finished
transaction finishes its open savepoints too: rolling back rolls them back
innermost first, committing releases them with it. When a transaction
owns its :class:`~sqlkit.core.scope.ExecutionScope` and the scope can fire, a
daemon observer thread waits for either the terminal state or cancellation,
and rolls the transaction back on cancellation. A savepoint sharing its
parent's scope is rolled back by the parent's observer.
"""

import itertools
import secrets
import threading
import weakref
from typing import TYPE_CHECKING, Any, Final, Optional, Protocol

from mypy_extensions import mypyc_attr

from sqlkit.builder import raw
from sqlkit.core.scope import BACKGROUND
from sqlkit.exceptions import RollbackError, TransactionError
from sqlkit.utils.logging import get_logger, noop_logger

if TYPE_CHECKING:
    from types import TracebackType

    from sqlkit.core.cache import StatementCache
    from sqlkit.core.scope import ExecutionScope
    from sqlkit.driver.connection import PreparedStatement
    from sqlkit.exceptions import SQLKitError
    from sqlkit.typing import LoggerHook

__all__ = ("PhysicalTransaction", "SavepointNamer", "Transaction")

logger = get_logger("transaction")

ACTIVE: Final = "active"
COMMITTED: Final = "committed"
ROLLED_BACK: Final = "rolled_back"


class PhysicalTransaction(Protocol):
    """A database transaction as opened by the driver adapter."""

    def prepare(self, sql: str) -> "PreparedStatement": ...

    def execute(self, sql: str) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@mypyc_attr(allow_interpreted_subclasses=False)
class SavepointNamer:
    """Produces unique savepoint names: a counter plus a random suffix."""

    __slots__ = ("_counter",)

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"sp_{next(self._counter)}_{secrets.token_hex(4)}"


def _observe(ref: "weakref.ReferenceType[Transaction]", scope: "ExecutionScope") -> None:
    def finished() -> bool:
        tx = ref()
        return tx is None or not tx.active

    if not scope.wait(finished):
        return
    tx = ref()
    if tx is None:
        return
    try:
        tx._rollback(scope.error)
    except Exception:
        logger.warning(
            "Rollback after cancellation failed",
            exc_info=True,
            extra={"extra_fields": {"savepoint": tx.savepoint, "cause": repr(scope.error)}},
        )


@mypyc_attr(allow_interpreted_subclasses=False)
class Transaction:
    """A root transaction or a savepoint within one.

    Created by :meth:`sqlkit.Database.begin`. After the first
    :meth:`commit` or :meth:`rollback`, both methods do nothing and return
    ``None``. The one exception is :meth:`commit` after the observer rolled
    the transaction back, which raises the cancellation error.

    Args:
        physical: The physical transaction, shared by every nested level.
        cache: Statement cache bound to ``physical``.
        scope: Cancellation token watched by the observer thread.
        logger: Hook receiving every control statement.
        savepoint: Savepoint name; ``None`` for a root transaction.
        parent: The enclosing transaction of a savepoint.
    """

    __slots__ = (
        "__weakref__",
        "_cancel_error",
        "_children",
        "_finished",
        "_lock",
        "_logger",
        "_state",
        "cache",
        "parent",
        "physical",
        "savepoint",
        "scope",
    )

    def __init__(
        self,
        physical: "PhysicalTransaction",
        cache: "StatementCache",
        *,
        scope: "ExecutionScope" = BACKGROUND,
        logger: "LoggerHook" = noop_logger,
        savepoint: Optional[str] = None,
        parent: "Optional[Transaction]" = None,
    ) -> None:
        self.physical = physical
        self.cache = cache
        self.scope = scope
        self.savepoint = savepoint
        self.parent = parent
        self._logger = logger
        self._lock = threading.Lock()
        self._state = ACTIVE
        self._cancel_error: Optional[SQLKitError] = None
        self._children: weakref.WeakSet[Transaction] = weakref.WeakSet()
        self._finished = threading.Event()
        if scope.can_cancel and (parent is None or scope is not parent.scope):
            self._start_observer()

    def _start_observer(self) -> None:
        weakref.finalize(self, self.scope.notify)
        thread = threading.Thread(
            target=_observe, args=(weakref.ref(self), self.scope), name="sqlkit-tx-observer", daemon=True
        )
        thread.start()

    @property
    def root(self) -> "Transaction":
        tx = self
        while tx.parent is not None:
            tx = tx.parent
        return tx

    @property
    def active(self) -> bool:
        return self._state == ACTIVE

    @property
    def committed(self) -> bool:
        return self._state == COMMITTED

    @property
    def rolled_back(self) -> bool:
        return self._state == ROLLED_BACK

    def ensure_active(self) -> None:
        """Raise unless statements can still run in this transaction.

        Raises:
            TransactionCancelledError: If the scope has been cancelled.
            TransactionError: If the transaction has already finished.
        """
        self.scope.raise_if_cancelled()
        if self._state != ACTIVE:
            msg = f"transaction already {self._state.replace('_', ' ')}"
            raise TransactionError(msg)

    def nested(self, name: str, scope: "Optional[ExecutionScope]" = None) -> "Transaction":
        """Open savepoint ``name`` and return it as a child transaction."""
        self.ensure_active()
        sql = f"SAVEPOINT {name}"
        try:
            self.physical.execute(sql)
        finally:
            self._logger(raw(sql))
        child = Transaction(
            self.physical,
            self.cache,
            scope=scope if scope is not None else self.scope,
            logger=self._logger,
            savepoint=name,
            parent=self,
        )
        with self._lock:
            self._children.add(child)
        return child

    def _open_children(self) -> "list[Transaction]":
        with self._lock:
            return [child for child in self._children if not child._finished.is_set()]

    def commit(self) -> None:
        """Commit, or release the savepoint.

        Open savepoints are released along with it.

        Raises:
            TransactionCancelledError: If the scope was cancelled before the
                commit, or if cancellation already rolled the transaction
                back. Nothing is committed.
        """
        with self._lock:
            if self._state == COMMITTED:
                return
            if self._state == ROLLED_BACK:
                if self._cancel_error is not None:
                    raise self._cancel_error
                return
            error = self.scope.error
            if error is not None:
                raise error
            self._state = COMMITTED

        self._release_children()
        if self.savepoint is not None:
            self._finish(f"RELEASE SAVEPOINT {self.savepoint}", self.physical.execute)
        else:
            self._finish("COMMIT", lambda _: self.physical.commit())

    def _release_children(self) -> None:
        for child in self._open_children():
            with child._lock:
                released = child._state == ACTIVE
                if released:
                    child._state = COMMITTED
            if released:
                child._release_children()
                child._finished.set()
                child.scope.notify()
            child.wait()

    def rollback(self) -> None:
        """Roll back, or roll back to the savepoint.

        Open savepoints are rolled back first, innermost first.
        """
        self._rollback(None)

    def _rollback(self, cause: "Optional[SQLKitError]") -> None:
        with self._lock:
            if self._state != ACTIVE:
                return
            self._state = ROLLED_BACK
            self._cancel_error = cause

        for child in self._open_children():
            try:
                child._rollback(cause)
            except Exception:
                logger.warning(
                    "Failed to roll back savepoint",
                    exc_info=True,
                    extra={"extra_fields": {"savepoint": child.savepoint}},
                )
            child.wait()

        if self.savepoint is not None:
            self._finish(f"ROLLBACK TO SAVEPOINT {self.savepoint}", self.physical.execute)
        else:
            self._finish("ROLLBACK", lambda _: self.physical.rollback())

    def _finish(self, sql: str, operation: Any) -> None:
        try:
            operation(sql)
        finally:
            self._logger(raw(sql))
            if self.savepoint is None:
                self._close_cache()
            self._finished.set()
            self.scope.notify()

    def _close_cache(self) -> None:
        try:
            self.cache.close()
        except Exception:
            logger.warning("Failed to close transaction statements", exc_info=True)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the transaction is committed or rolled back.

        Returns:
            ``True`` if the terminal state was reached within ``timeout``.
        """
        return self._finished.wait(timeout)

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: Optional[BaseException],
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        if exc_val is None:
            self.commit()
            return
        try:
            self.rollback()
        except Exception as rollback_error:
            raise RollbackError(exc_val, rollback_error) from exc_val

    def __repr__(self) -> str:
        kind = f"savepoint {self.savepoint}" if self.savepoint is not None else "root"
        return f"Transaction({kind}, {self._state})"
