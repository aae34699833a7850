"""Renderable SQL primitives shared by every builder.

Everything that produces SQL implements ``render() -> Rendered``. Builders
assemble dialect-neutral ``?`` text internally and only rebind placeholders
when the outermost statement is rendered.
"""

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, NamedTuple, Optional

from typing_extensions import Self

from sqlkit.dialects import GENERIC, Dialect, rebind
from sqlkit.exceptions import SQLKitError

if TYPE_CHECKING:
    from sqlkit.typing import Renderable

__all__ = ("NULL", "Parens", "QueryBuilder", "Raw", "Rendered", "compile_neutral", "questions", "raw")


class Rendered(NamedTuple):
    """SQL text, its positional values, and the build error if there was one."""

    sql: str
    parameters: "list[Any]"
    error: Optional[SQLKitError] = None

    def unwrap(self) -> "tuple[str, list[Any]]":
        """Return ``(sql, parameters)``.

        Raises:
            SQLKitError: The build error carried by this result.
        """
        if self.error is not None:
            raise self.error
        return self.sql, self.parameters


class _Compiled:
    """Mixin turning a raising ``_compile`` into the ``render`` contract."""

    __slots__ = ()

    def _compile(self) -> "tuple[str, list[Any]]":
        raise NotImplementedError

    def render(self) -> Rendered:
        try:
            sql, parameters = self._compile()
        except SQLKitError as e:
            return Rendered("", [], e)
        return Rendered(sql, parameters)


def compile_neutral(statement: "Renderable") -> "tuple[str, list[Any]]":
    """Render ``statement`` with ``?`` placeholders and raise its build error.

    Builders nested inside other statements must not be rebound on their own,
    the enclosing statement numbers every placeholder once.
    """
    if isinstance(statement, QueryBuilder):
        return statement.render_neutral().unwrap()
    return statement.render().unwrap()


@dataclass(frozen=True)
class Raw(_Compiled):
    """Raw SQL text with positional values, used verbatim."""

    sql: str
    values: "tuple[Any, ...]" = ()

    def _compile(self) -> "tuple[str, list[Any]]":
        return self.sql, list(self.values)


def raw(sql: str, *values: Any) -> Raw:
    """Build a :class:`Raw` fragment from ``sql`` and its positional values."""
    return Raw(sql, values)


NULL = Raw("NULL")


@dataclass(frozen=True)
class Parens(_Compiled):
    """Wrap a renderable in parentheses, e.g. for subqueries."""

    statement: "Renderable"

    def _compile(self) -> "tuple[str, list[Any]]":
        sql, values = compile_neutral(self.statement)
        return f"({sql})", values


def questions(count: int) -> str:
    """Return a parenthesized list of ``count`` placeholders: ``(?, ?, ?)``."""
    return "(" + ", ".join("?" * count) + ")"


@dataclass(frozen=True)
class QueryBuilder(_Compiled):
    """Base class for the immutable statement builders.

    Every configuring method returns a modified copy. Build errors are stored
    on the copy and surface when the statement is rendered.
    """

    dialect: Dialect = field(default=GENERIC, kw_only=True)
    error: Optional[SQLKitError] = field(default=None, kw_only=True, compare=False)

    def _build(self) -> "tuple[str, list[Any]]":
        """Assemble dialect-neutral SQL and values."""
        raise NotImplementedError

    def _compile(self) -> "tuple[str, list[Any]]":
        if self.error is not None:
            raise self.error
        return self._build()

    def _copy(self, **changes: Any) -> Self:
        return replace(self, **changes)

    def _fail(self, error: SQLKitError) -> Self:
        """Return a copy carrying ``error``; the first error wins."""
        if self.error is not None:
            return self
        return replace(self, error=error)

    def with_dialect(self, dialect: Dialect) -> Self:
        return self._copy(dialect=dialect)

    def render_neutral(self) -> Rendered:
        """Render with ``?`` placeholders regardless of the dialect."""
        return super().render()

    def render(self) -> Rendered:
        rendered = self.render_neutral()
        if rendered.error is not None:
            return rendered
        try:
            return Rendered(rebind(self.dialect, rendered.sql), rendered.parameters)
        except SQLKitError as e:
            return Rendered("", [], e)
