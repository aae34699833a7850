"""Row codec: objects to columns and values, result rows to objects.

Dataclasses, msgspec structs and mappings are encoded into parallel column and
value lists for INSERT and UPDATE. Result rows decode into the same schema
types, into plain dicts, or into scalars when a single column is selected.
"""

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Callable, NamedTuple, Optional, Protocol, get_args, get_origin

import msgspec

from sqlkit.exceptions import (
    DecodeError,
    DuplicateFieldError,
    EncodeError,
    MissingDestinationError,
    NoRowsError,
    TooManyColumnsError,
)
from sqlkit.utils.type_guards import is_dataclass, is_msgspec_struct, is_schema

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

__all__ = ("Decoder", "Encoder", "FieldMapper", "MappedField", "RowCodec")

SKIP_FIELD = "-"


class Encoder(Protocol):
    def encode(self, obj: Any, *fields: str) -> "tuple[list[str], list[Any]]": ...


class Decoder(Protocol):
    def decode(self, schema_type: Any, columns: "Sequence[str]", rows: "Iterable[Sequence[Any]]") -> Any: ...


class MappedField(NamedTuple):
    """A schema field and the column it maps to.

    ``key`` is the name ``msgspec.convert`` expects for the field.
    """

    attribute: str
    column: str
    key: str


@dataclass(frozen=True)
class FieldMapper:
    """Maps schema fields onto column names.

    A dataclass field's ``metadata[tag]`` names its column explicitly and the
    value ``"-"`` skips the field. msgspec struct fields renamed with
    ``msgspec.field(name=...)`` use that name. Every other field name is passed
    through ``name_func``.
    """

    tag: str = "sql"
    name_func: "Callable[[str], str]" = str.lower

    def fields(self, schema_type: type) -> "tuple[MappedField, ...]":
        return _mapped_fields(self, schema_type)


@lru_cache(maxsize=None)
def _mapped_fields(mapper: FieldMapper, schema_type: type) -> "tuple[MappedField, ...]":
    mapped: list[MappedField] = []
    if is_msgspec_struct(schema_type):
        for info in msgspec.structs.fields(schema_type):
            column = info.encode_name if info.encode_name != info.name else mapper.name_func(info.name)
            mapped.append(MappedField(info.name, column, info.encode_name))
    elif is_dataclass(schema_type):
        for item in dataclasses.fields(schema_type):
            tagged = item.metadata.get(mapper.tag)
            if tagged == SKIP_FIELD:
                continue
            mapped.append(MappedField(item.name, tagged or mapper.name_func(item.name), item.name))
    else:
        msg = f"{schema_type!r} is not a dataclass or msgspec struct"
        raise EncodeError(msg)
    return tuple(mapped)


def _is_list_type(schema_type: Any) -> bool:
    return schema_type is list or get_origin(schema_type) is list


def _is_dict_type(schema_type: Any) -> bool:
    return schema_type is dict or get_origin(schema_type) in {dict, Mapping}


@dataclass(frozen=True)
class RowCodec:
    """Default :class:`Encoder` and :class:`Decoder`.

    Args:
        mapper: Field to column naming.
        unsafe: Skip duplicate fields when encoding and ignore columns without a
            destination field when decoding, instead of raising.
    """

    mapper: FieldMapper = field(default_factory=FieldMapper)
    unsafe: bool = False

    def encode(self, obj: Any, *fields: str) -> "tuple[list[str], list[Any]]":
        """Return the column names and values of ``obj``.

        Args:
            obj: A dataclass instance, msgspec struct or mapping.
            *fields: Restrict the output to these column names.

        Raises:
            DuplicateFieldError: If two fields map to the same column.
            EncodeError: If ``obj`` is not a supported type.
        """
        if isinstance(obj, Mapping):
            items = [(str(key), value) for key, value in obj.items()]
        elif is_schema(obj) and not isinstance(obj, type):
            items = [(info.column, getattr(obj, info.attribute)) for info in self.mapper.fields(type(obj))]
        else:
            msg = f"cannot encode {type(obj).__name__!r} into columns"
            raise EncodeError(msg)

        columns: list[str] = []
        values: list[Any] = []
        for column, value in items:
            if fields and column not in fields:
                continue
            if column in columns:
                if self.unsafe:
                    continue
                raise DuplicateFieldError(detail=f"duplicate values for column {column!r}")
            columns.append(column)
            values.append(value)
        return columns, values

    def decode(self, schema_type: Any, columns: "Sequence[str]", rows: "Iterable[Sequence[Any]]") -> Any:
        """Decode result rows into ``schema_type``.

        ``list[T]`` decodes every row; any other target decodes the first row
        and raises :class:`~sqlkit.exceptions.NoRowsError` when there is none.

        Raises:
            TooManyColumnsError: If a scalar target receives several columns.
            MissingDestinationError: If a column has no matching field.
            DecodeError: If a value cannot be converted to its field type.
        """
        if _is_list_type(schema_type):
            args = get_args(schema_type)
            decode_row = self._row_decoder(args[0] if args else Any, columns)
            return [decode_row(row) for row in rows]

        first = next(iter(rows), None)
        if first is None:
            raise NoRowsError
        return self._row_decoder(schema_type, columns)(first)

    def _row_decoder(self, schema_type: Any, columns: "Sequence[str]") -> "Callable[[Sequence[Any]], Any]":
        if is_schema(schema_type):
            return self._schema_decoder(schema_type, columns)
        if _is_dict_type(schema_type):
            return lambda row: dict(zip(columns, row))
        if schema_type is tuple:
            return tuple
        if len(columns) > 1:
            raise TooManyColumnsError(detail=f"too many columns to scan into {schema_type!r}: {len(columns)}")
        return lambda row: _convert_scalar(row[0], schema_type)

    def _schema_decoder(self, schema_type: type, columns: "Sequence[str]") -> "Callable[[Sequence[Any]], Any]":
        by_column = {info.column: info.key for info in self.mapper.fields(schema_type)}
        keys: list[Optional[str]] = []
        for column in columns:
            key = by_column.get(column)
            if key is None and not self.unsafe:
                raise MissingDestinationError(detail=f"missing destination for column {column!r}")
            keys.append(key)

        def decode_row(row: "Sequence[Any]") -> Any:
            data = {key: value for key, value in zip(keys, row) if key is not None and value is not None}
            try:
                return msgspec.convert(data, type=schema_type, strict=False)
            except msgspec.ValidationError as e:
                raise DecodeError(detail=f"cannot decode row into {schema_type.__name__}: {e}") from e

        return decode_row


def _convert_scalar(value: Any, schema_type: Any) -> Any:
    if value is None or schema_type is Any:
        return value
    if isinstance(schema_type, type) and type(value) is schema_type:
        return value
    try:
        return msgspec.convert(value, type=schema_type, strict=False)
    except msgspec.ValidationError as e:
        raise DecodeError(detail=f"cannot decode {value!r} into {schema_type!r}: {e}") from e
