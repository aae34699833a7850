"""sqlkit: parameterized SQL building, statement caching and nested transactions over DB-API."""

from sqlkit import builder, codec, config, core, dialects, driver, exceptions, typing, utils
from sqlkit.base import Database
from sqlkit.builder import (
    NULL,
    Condition,
    Delete,
    Insert,
    Raw,
    Rendered,
    Select,
    Update,
    delete,
    eq,
    eq_all,
    eq_any,
    gt,
    gt_eq,
    in_,
    insert,
    is_,
    lt,
    lt_eq,
    not_eq,
    raw,
    select,
    update,
)
from sqlkit.codec import FieldMapper, RowCodec
from sqlkit.config import (
    DatabaseConfig,
    with_codec,
    with_decoder,
    with_dialect,
    with_disabled_savepoints,
    with_encoder,
    with_logger,
)
from sqlkit.core import BACKGROUND, ExecutionScope, Result, StatementCache
from sqlkit.dialects import GENERIC, MYSQL, POSTGRES, SQLITE, Dialect, ParameterStyle, register_dialect
from sqlkit.driver import Transaction
from sqlkit.exceptions import (
    NestedTransactionError,
    NotAQueryError,
    RollbackError,
    SQLKitError,
    StatementInvalidError,
    TransactionCancelledError,
)
from sqlkit.utils.logging import noop_logger, std_logger

__version__ = "0.1.0"

__all__ = (
    "BACKGROUND",
    "GENERIC",
    "MYSQL",
    "NULL",
    "POSTGRES",
    "SQLITE",
    "Condition",
    "Database",
    "DatabaseConfig",
    "Delete",
    "Dialect",
    "ExecutionScope",
    "FieldMapper",
    "Insert",
    "NestedTransactionError",
    "NotAQueryError",
    "ParameterStyle",
    "Raw",
    "Rendered",
    "Result",
    "RollbackError",
    "RowCodec",
    "SQLKitError",
    "Select",
    "StatementCache",
    "StatementInvalidError",
    "Transaction",
    "TransactionCancelledError",
    "Update",
    "__version__",
    "builder",
    "codec",
    "config",
    "core",
    "delete",
    "dialects",
    "driver",
    "eq",
    "eq_all",
    "eq_any",
    "exceptions",
    "gt",
    "gt_eq",
    "in_",
    "insert",
    "is_",
    "lt",
    "lt_eq",
    "noop_logger",
    "not_eq",
    "raw",
    "register_dialect",
    "select",
    "std_logger",
    "typing",
    "update",
    "utils",
    "with_codec",
    "with_decoder",
    "with_dialect",
    "with_disabled_savepoints",
    "with_encoder",
    "with_logger",
)
