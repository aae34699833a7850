"""Execution scopes: cancellation tokens with optional deadlines.

A scope is cancelled explicitly with :meth:`ExecutionScope.cancel`, when its
deadline passes, or when its parent is cancelled. Transactions watch their
scope and roll back once it fires.
"""

import threading
import time
import weakref
from typing import TYPE_CHECKING, Callable, Optional

from mypy_extensions import mypyc_attr

from sqlkit.exceptions import DeadlineExceededError, TransactionCancelledError

if TYPE_CHECKING:
    from sqlkit.exceptions import SQLKitError

__all__ = ("BACKGROUND", "ExecutionScope")


@mypyc_attr(allow_interpreted_subclasses=False)
class ExecutionScope:
    """A cancellation token.

    Args:
        parent: Scope whose cancellation also cancels this one. The earlier of
            both deadlines applies.
        timeout: Seconds from now after which the scope is cancelled with
            :class:`~sqlkit.exceptions.DeadlineExceededError`.
        cancellable: ``False`` only for :data:`BACKGROUND`, which never fires.
    """

    __slots__ = ("__weakref__", "_cancellable", "_children", "_condition", "_deadline", "_error", "_parent")

    def __init__(
        self, parent: "Optional[ExecutionScope]" = None, timeout: Optional[float] = None, *, cancellable: bool = True
    ) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._children: weakref.WeakSet[ExecutionScope] = weakref.WeakSet()
        self._error: Optional[SQLKitError] = None
        self._parent = parent
        self._cancellable = cancellable

        deadline = None if timeout is None else time.monotonic() + timeout
        if parent is not None and parent._deadline is not None:
            deadline = parent._deadline if deadline is None else min(deadline, parent._deadline)
        self._deadline = deadline

        if parent is not None:
            with parent._condition:
                parent._children.add(self)
            if parent.cancelled:
                self.cancel(parent.error)

    @property
    def deadline(self) -> Optional[float]:
        """The :func:`time.monotonic` instant the scope expires, if any."""
        return self._deadline

    @property
    def can_cancel(self) -> bool:
        """Whether this scope can ever be cancelled."""
        return self._cancellable or self._deadline is not None

    @property
    def error(self) -> "Optional[SQLKitError]":
        """The cancellation cause, or ``None`` while the scope is live."""
        if self._error is None and self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel(DeadlineExceededError())
        return self._error

    @property
    def cancelled(self) -> bool:
        return self.error is not None

    def child(self, timeout: Optional[float] = None) -> "ExecutionScope":
        """Return a new scope cancelled along with this one."""
        return ExecutionScope(self, timeout)

    def cancel(self, error: "Optional[SQLKitError]" = None) -> None:
        """Cancel the scope and every child scope.

        The first cancellation wins; later calls do nothing.
        """
        if not self.can_cancel:
            return
        with self._condition:
            if self._error is not None:
                return
            self._error = error if error is not None else TransactionCancelledError()
            children = list(self._children)
            self._condition.notify_all()
        for scope in children:
            scope.cancel(self._error)

    def notify(self) -> None:
        """Wake threads blocked in :meth:`wait` so they re-check their condition."""
        with self._condition:
            self._condition.notify_all()

    def wait(self, until: "Callable[[], bool]") -> bool:
        """Block until the scope is cancelled or ``until()`` returns true.

        ``until`` is re-checked whenever :meth:`notify` is called.

        Returns:
            ``True`` if the scope was cancelled.
        """
        with self._condition:
            while True:
                if self._error is not None:
                    return True
                if until():
                    return False
                if self._deadline is None:
                    self._condition.wait()
                    continue
                remaining = self._deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._condition.wait(remaining)
        return self.cancelled

    def raise_if_cancelled(self) -> None:
        """Raise the cancellation cause if the scope has fired."""
        error = self.error
        if error is not None:
            raise error

    def __repr__(self) -> str:
        state = "cancelled" if self._error is not None else "live"
        return f"ExecutionScope({state}, deadline={self._deadline!r})"


BACKGROUND: "ExecutionScope" = ExecutionScope(cancellable=False)
"""The root scope. It is never cancelled."""
