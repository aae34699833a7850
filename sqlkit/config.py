"""Database configuration and functional options.

``Database(connection, with_dialect(POSTGRES), with_logger(std_logger))``
applies each option, in order, to a fresh :class:`DatabaseConfig`.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from typing_extensions import TypeAlias

from sqlkit.codec import RowCodec
from sqlkit.utils.logging import noop_logger

if TYPE_CHECKING:
    from sqlkit.codec import Decoder, Encoder
    from sqlkit.dialects import Dialect
    from sqlkit.typing import LoggerHook

__all__ = (
    "DatabaseConfig",
    "Option",
    "with_codec",
    "with_decoder",
    "with_dialect",
    "with_disabled_savepoints",
    "with_encoder",
    "with_logger",
)


@dataclass
class DatabaseConfig:
    """Settings of a :class:`~sqlkit.Database`.

    Attributes:
        logger: Hook called with every statement after it runs.
        dialect: Placeholder dialect. ``None`` lets ``Database.open`` infer it
            from the driver, falling back to the generic dialect.
        encoder: Converts records to columns and values for INSERT and UPDATE.
        decoder: Converts result rows in ``Result.decode``.
        savepoints_enabled: Whether ``begin`` inside a transaction opens a
            savepoint instead of raising.
    """

    logger: "LoggerHook" = noop_logger
    dialect: "Optional[Dialect]" = None
    encoder: "Encoder" = field(default_factory=RowCodec)
    decoder: "Decoder" = field(default_factory=RowCodec)
    savepoints_enabled: bool = True


Option: TypeAlias = Callable[[DatabaseConfig], None]


def with_logger(logger: "LoggerHook") -> Option:
    """Log every statement through ``logger``, e.g. :func:`~sqlkit.utils.logging.std_logger`."""

    def apply(config: DatabaseConfig) -> None:
        config.logger = logger

    return apply


def with_dialect(dialect: "Dialect") -> Option:
    def apply(config: DatabaseConfig) -> None:
        config.dialect = dialect

    return apply


def with_encoder(encoder: "Encoder") -> Option:
    def apply(config: DatabaseConfig) -> None:
        config.encoder = encoder

    return apply


def with_decoder(decoder: "Decoder") -> Option:
    def apply(config: DatabaseConfig) -> None:
        config.decoder = decoder

    return apply


def with_codec(codec: "RowCodec") -> Option:
    """Use ``codec`` as both encoder and decoder."""

    def apply(config: DatabaseConfig) -> None:
        config.encoder = codec
        config.decoder = codec

    return apply


def with_disabled_savepoints() -> Option:
    """Make ``begin`` inside a transaction raise ``NestedTransactionError``."""

    def apply(config: DatabaseConfig) -> None:
        config.savepoints_enabled = False

    return apply
