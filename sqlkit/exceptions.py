from typing import Any, Optional

__all__ = (
    "CloseError",
    "DeadlineExceededError",
    "DecodeError",
    "DuplicateFieldError",
    "EncodeError",
    "ImproperConfigurationError",
    "MissingDependencyError",
    "MissingDestinationError",
    "NestedTransactionError",
    "NoRowsError",
    "NotAQueryError",
    "RollbackError",
    "SQLKitError",
    "StatementCacheClosedError",
    "StatementInvalidError",
    "TooManyColumnsError",
    "TransactionCancelledError",
    "TransactionError",
)


class SQLKitError(Exception):
    """Base exception class from which all sqlkit exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLKitError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(SQLKitError, ImportError):
    """Missing optional dependency.

    Raised when a DB-API driver module requested by name is not installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install {install_package or package}'",
        )


class ImproperConfigurationError(SQLKitError):
    """Improper Configuration error.

    Raised when options or driver modules cannot be combined into a working database.
    """


# -- Statement building --
class StatementInvalidError(SQLKitError):
    """A statement could not be rendered from its builder input."""

    detail = "statement invalid"

    def __init__(self, message: Optional[str] = None, sql: Optional[str] = None) -> None:
        detail_message = message or self.detail
        if sql:
            detail_message = f"{detail_message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


# -- Execution protocol --
class NotAQueryError(SQLKitError):
    """Decode was called on a result that did not come from a query."""

    detail = "query was not issued"


class StatementCacheClosedError(SQLKitError):
    """A statement was requested from a cache that has been closed."""

    detail = "statement cache is closed"


class CloseError(SQLKitError):
    """One or more resources failed to close.

    ``errors`` holds every failure in the order it was observed.
    """

    def __init__(self, errors: "list[BaseException]") -> None:
        self.errors = errors
        super().__init__(detail=f"{len(errors)} error(s) while closing: {errors[-1]!r}")


# -- Transactions --
class TransactionError(SQLKitError):
    """Base class for transaction errors."""


class NestedTransactionError(TransactionError):
    """Begin was called on an active transaction while savepoints are disabled."""

    detail = "nested transactions not allowed"


class TransactionCancelledError(TransactionError):
    """The transaction's execution scope was cancelled."""

    detail = "transaction scope cancelled"


class DeadlineExceededError(TransactionCancelledError):
    """The transaction's execution scope passed its deadline."""

    detail = "transaction scope deadline exceeded"


class RollbackError(TransactionError):
    """Rolling back after a failed unit of work also failed.

    The original unit-of-work error is available as ``__cause__`` and ``original``;
    the rollback failure as ``rollback_error``.
    """

    def __init__(self, original: BaseException, rollback_error: BaseException) -> None:
        self.original = original
        self.rollback_error = rollback_error
        super().__init__(detail=f"rollback failed: {rollback_error!r} (original error: {original!r})")


# -- Row codec --
class DecodeError(SQLKitError):
    """Base class for row decoding errors."""


class TooManyColumnsError(DecodeError):
    """A scalar destination received more than one column."""

    detail = "too many columns to scan"


class MissingDestinationError(DecodeError):
    """A result column has no matching destination field."""

    detail = "missing destination"


class NoRowsError(DecodeError):
    """A single-object decode found no rows."""

    detail = "no rows in result set"


class EncodeError(SQLKitError):
    """An object could not be converted into columns and values."""


class DuplicateFieldError(EncodeError):
    """An object maps two fields onto the same column name."""

    detail = "duplicate values"
