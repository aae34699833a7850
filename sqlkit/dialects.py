"""Placeholder dialects and rebinding.

Builders always render dialect-neutral ``?`` placeholders. A :class:`Dialect`
rewrites them into the placeholder syntax its driver expects and shapes the
bound values to match.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Final, Optional

import sqlglot
from sqlglot.errors import TokenError
from sqlglot.tokens import TokenType

from sqlkit.exceptions import StatementInvalidError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlkit.typing import Parameters

__all__ = (
    "GENERIC",
    "MYSQL",
    "POSTGRES",
    "SQLITE",
    "Dialect",
    "ParameterStyle",
    "dialect_for_driver",
    "placeholder_positions",
    "rebind",
    "register_dialect",
)

PLACEHOLDER_CACHE_SIZE: Final = 4096


class ParameterStyle(str, Enum):
    """Parameter style enumeration with string values."""

    QMARK = "qmark"
    NUMERIC = "numeric"
    NAMED_COLON = "named_colon"

    def __str__(self) -> str:
        return self.value

    def placeholder(self, ordinal: int) -> str:
        """Return the placeholder token for the 1-based ``ordinal`` parameter."""
        if self is ParameterStyle.NUMERIC:
            return f"${ordinal}"
        if self is ParameterStyle.NAMED_COLON:
            return f":arg{ordinal}"
        return "?"


@dataclass(frozen=True)
class Dialect:
    """A named placeholder syntax.

    Args:
        name: Dialect name, used in ``repr`` and logs.
        parameter_style: How ``?`` placeholders are rewritten for the driver.
        tokenizer: sqlglot dialect whose quoting rules decide which ``?`` are
            placeholders, e.g. ``"mysql"`` for backtick identifiers.
    """

    name: str
    parameter_style: ParameterStyle = ParameterStyle.QMARK
    tokenizer: Optional[str] = None

    def rebind(self, sql: str) -> str:
        return rebind(self, sql)

    def placeholder_positions(self, sql: str) -> "tuple[int, ...]":
        return placeholder_positions(sql, self.tokenizer)

    def bind_parameters(self, values: "Sequence[Any]") -> "Parameters":
        """Shape positional ``values`` for the driver's ``execute`` call."""
        if self.parameter_style is ParameterStyle.NAMED_COLON:
            return {f"arg{ordinal}": value for ordinal, value in enumerate(values, 1)}
        return tuple(values)


GENERIC: Final = Dialect("generic")
POSTGRES: Final = Dialect("postgres", ParameterStyle.NUMERIC, "postgres")
MYSQL: Final = Dialect("mysql", tokenizer="mysql")
SQLITE: Final = Dialect("sqlite", tokenizer="sqlite")

_DRIVER_DIALECTS: "dict[str, Dialect]" = {
    "sqlite3": SQLITE,
    "postgres": POSTGRES,
    "mysql": MYSQL,
}

_PARAMSTYLE_DIALECTS: "dict[str, Dialect]" = {
    "qmark": GENERIC,
    "named": Dialect("named", ParameterStyle.NAMED_COLON),
}


def register_dialect(driver_name: str, dialect: Dialect) -> None:
    """Map a DB-API module name onto ``dialect`` for ``Database.open``."""
    _DRIVER_DIALECTS[driver_name] = dialect


def dialect_for_driver(driver_name: str, paramstyle: Optional[str] = None) -> Optional[Dialect]:
    """Infer a dialect from a driver name, falling back to its PEP 249 ``paramstyle``.

    Returns:
        The dialect, or ``None`` when nothing is known about the driver.
    """
    dialect = _DRIVER_DIALECTS.get(driver_name)
    if dialect is None and paramstyle is not None:
        dialect = _PARAMSTYLE_DIALECTS.get(paramstyle)
    return dialect


@lru_cache(maxsize=PLACEHOLDER_CACHE_SIZE)
def placeholder_positions(sql: str, tokenizer: Optional[str] = None) -> "tuple[int, ...]":
    """Return the offsets of every ``?`` placeholder token in ``sql``.

    Question marks inside string literals, quoted identifiers and comments are
    not placeholders and are not reported. ``tokenizer`` names the sqlglot
    dialect whose quoting rules apply; ``None`` uses sqlglot's defaults.

    Raises:
        StatementInvalidError: If the text cannot be tokenized.
    """
    if "?" not in sql:
        return ()
    try:
        tokens = sqlglot.tokenize(sql, read=tokenizer)
    except TokenError as e:
        msg = f"could not tokenize statement: {e}"
        raise StatementInvalidError(msg, sql=sql) from e
    return tuple(token.start for token in tokens if token.token_type == TokenType.PLACEHOLDER and token.text == "?")


def rebind(dialect: Dialect, sql: str) -> str:
    """Rewrite the ``?`` placeholders of ``sql`` into ``dialect``'s syntax.

    The Nth placeholder becomes ``$N`` for numeric dialects and ``:argN`` for
    named ones; qmark dialects get ``sql`` back unchanged.
    """
    style = dialect.parameter_style
    if style is ParameterStyle.QMARK:
        return sql
    positions = dialect.placeholder_positions(sql)
    if not positions:
        return sql

    parts: list[str] = []
    last = 0
    for ordinal, position in enumerate(positions, 1):
        parts.append(sql[last:position])
        parts.append(style.placeholder(ordinal))
        last = position + 1
    parts.append(sql[last:])
    return "".join(parts)
