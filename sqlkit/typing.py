from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Protocol, Union, runtime_checkable

from typing_extensions import TypeAlias, TypeVar

if TYPE_CHECKING:
    from dataclasses import Field

    from sqlkit.builder._base import Rendered

__all__ = (
    "ConnectionProtocol",
    "CursorProtocol",
    "DataclassProtocol",
    "LoggerHook",
    "ModelT",
    "Parameters",
    "Renderable",
)

ModelT = TypeVar("ModelT")

Parameters: TypeAlias = Union[Sequence[Any], "dict[str, Any]"]
"""Parameters as handed to a DB-API ``execute`` call."""


@runtime_checkable
class Renderable(Protocol):
    """Anything that produces SQL text, positional values and a build error."""

    def render(self) -> "Rendered": ...


LoggerHook: TypeAlias = Callable[[Renderable], None]


class DataclassProtocol(Protocol):
    """Protocol for instance checking dataclasses."""

    __dataclass_fields__: "ClassVar[dict[str, Field[Any]]]"


class CursorProtocol(Protocol):
    """The PEP 249 cursor surface sqlkit relies on."""

    description: Any
    rowcount: int
    lastrowid: Any

    def execute(self, operation: str, parameters: Any = ...) -> Any: ...

    def fetchall(self) -> "list[Any]": ...

    def fetchone(self) -> Optional[Any]: ...

    def close(self) -> None: ...


class ConnectionProtocol(Protocol):
    """The PEP 249 connection surface sqlkit relies on."""

    def cursor(self) -> CursorProtocol: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...
