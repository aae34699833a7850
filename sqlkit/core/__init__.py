"""Statement caching, cancellation scopes and execution results."""

from sqlkit.core.cache import CacheStats, ReadWriteLock, StatementCache
from sqlkit.core.result import Result
from sqlkit.core.scope import BACKGROUND, ExecutionScope

__all__ = ("BACKGROUND", "CacheStats", "ExecutionScope", "ReadWriteLock", "Result", "StatementCache")
