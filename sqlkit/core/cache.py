"""Prepared statement cache.

Each database connection and each root transaction owns one
:class:`StatementCache`. Entries are keyed by the exact rendered SQL text, are
created lazily on first use, and live until the cache is closed.
"""

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Final, Protocol

from mypy_extensions import mypyc_attr

from sqlkit.exceptions import CloseError, StatementCacheClosedError
from sqlkit.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

__all__ = ("CacheStats", "PreparedHandle", "ReadWriteLock", "StatementCache")

logger = get_logger("core.cache")

CACHE_STATS_SLOTS: Final = ("_lock", "hits", "misses")
STATEMENT_CACHE_SLOTS: Final = ("_closed", "_entries", "_lock", "_preparer", "_stats")


class PreparedHandle(Protocol):
    """A prepared statement that must be closed when its cache is."""

    def close(self) -> None: ...


@mypyc_attr(allow_interpreted_subclasses=False)
class ReadWriteLock:
    """A lock shared by readers and held exclusively by one writer.

    Waiting writers block new readers so that a stream of lookups cannot
    starve a preparation.
    """

    __slots__ = ("_condition", "_readers", "_writer", "_writers_waiting")

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> "Iterator[None]":
        with self._condition:
            while self._writer or self._writers_waiting:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if not self._readers:
                    self._condition.notify_all()

    @contextmanager
    def write(self) -> "Iterator[None]":
        with self._condition:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._condition.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._condition:
                self._writer = False
                self._condition.notify_all()


@mypyc_attr(allow_interpreted_subclasses=False)
class CacheStats:
    """Hit and miss counters of a :class:`StatementCache`.

    Lookups run concurrently under the shared side of the cache lock, so the
    counters carry their own lock.
    """

    __slots__ = CACHE_STATS_SLOTS

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def record_hit(self) -> None:
        with self._lock:
            self.hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self.misses += 1

    def __repr__(self) -> str:
        return f"CacheStats(hits={self.hits}, misses={self.misses})"


@mypyc_attr(allow_interpreted_subclasses=False)
class StatementCache:
    """Map SQL text to prepared handles, preparing each text at most once.

    Lookups take the shared side of a :class:`ReadWriteLock`. A miss takes the
    exclusive side, checks again, and only then calls ``preparer``, so
    concurrent misses on the same text prepare it once.

    Args:
        preparer: Called with the SQL text to create a new handle. Its
            exceptions propagate and nothing is stored.
    """

    __slots__ = STATEMENT_CACHE_SLOTS

    def __init__(self, preparer: "Callable[[str], PreparedHandle]") -> None:
        self._preparer = preparer
        self._entries: dict[str, PreparedHandle] = {}
        self._lock = ReadWriteLock()
        self._closed = False
        self._stats = CacheStats()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stats(self) -> CacheStats:
        return self._stats

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)

    def __contains__(self, sql: Any) -> bool:
        with self._lock.read():
            return sql in self._entries

    def get(self, sql: str) -> "PreparedHandle":
        """Return the handle for ``sql``, preparing it on first use.

        Raises:
            StatementCacheClosedError: If the cache has been closed.
        """
        with self._lock.read():
            if self._closed:
                raise StatementCacheClosedError
            handle = self._entries.get(sql)
        if handle is not None:
            self._stats.record_hit()
            return handle

        with self._lock.write():
            if self._closed:
                raise StatementCacheClosedError
            handle = self._entries.get(sql)
            if handle is not None:
                self._stats.record_hit()
                return handle
            handle = self._preparer(sql)
            self._entries[sql] = handle
            self._stats.record_miss()
            logger.debug("Prepared statement", extra={"extra_fields": {"sql": sql, "cached": len(self._entries)}})
            return handle

    def close(self) -> None:
        """Close every cached handle.

        Every handle is closed even if some fail. Closing an already closed
        cache does nothing.

        Raises:
            CloseError: With every failure, chained from the last one.
        """
        with self._lock.write():
            if self._closed:
                return
            self._closed = True
            entries, self._entries = self._entries, {}

        errors: list[Exception] = []
        for sql, handle in entries.items():
            try:
                handle.close()
            except Exception as e:
                logger.debug("Failed to close prepared statement", extra={"extra_fields": {"sql": sql}})
                errors.append(e)
        if errors:
            raise CloseError(errors) from errors[-1]
