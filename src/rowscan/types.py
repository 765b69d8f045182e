"""
Wire value types for row scanning.

This module provides:
- Kind: value kinds shared by wire values and destination fields
- Wire values: a closed set of tagged value classes, one per column value
- Column: column metadata from cursor descriptions
- to_wire: wrap plain Python values into wire values
- wire_from_postgres: wrap psycopg values using the column type OID
"""
import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Self

import numpy as np
from psycopg.postgres import types as pg_types
from rowscan.exceptions import RowSourceError

logger = logging.getLogger(__name__)


class Kind(enum.Enum):
    TEXT = 'text'
    INT = 'int'
    FLOAT = 'float'
    BOOL = 'bool'
    BYTES = 'bytes'
    OPAQUE = 'opaque'


ZERO_VALUES: dict[Kind, Any] = {
    Kind.TEXT: '',
    Kind.INT: 0,
    Kind.FLOAT: 0.0,
    Kind.BOOL: False,
    Kind.BYTES: b'',
}


@dataclass(frozen=True, slots=True)
class Null:
    """SQL NULL."""


@dataclass(frozen=True, slots=True)
class Text:
    value: str


@dataclass(frozen=True, slots=True)
class Int:
    """Signed integer of a fixed byte width (2, 4 or 8)."""
    value: int
    width: int = 8


@dataclass(frozen=True, slots=True)
class Float:
    """Floating point value of a fixed byte width (4 or 8)."""
    value: float
    width: int = 8


@dataclass(frozen=True, slots=True)
class Bool:
    value: bool


@dataclass(frozen=True, slots=True)
class Bytes:
    value: bytes


@dataclass(frozen=True, slots=True)
class Opaque:
    """Any other driver value (dates, decimals, json documents, uuids, ...).

    Opaque values are assigned by type identity, or by isinstance in
    lenient mode.
    """
    value: Any


@dataclass(frozen=True, slots=True)
class Array:
    """Array value with explicit dimensions.

    `elements` holds the flattened elements in row-major order, NULL
    elements included as None.
    """
    element: Kind
    width: int | None
    dimensions: tuple[int, ...]
    elements: tuple[Any, ...]

    @classmethod
    def from_list(cls, element: Kind, width: int | None, data: list) -> Self:
        """Build an array from a (possibly nested) list as returned by the driver.

        An empty list is a one-dimensional array of length zero.
        """
        dimensions = []
        level = data
        while isinstance(level, list):
            dimensions.append(len(level))
            if not level:
                break
            level = level[0]
        return cls(element, width, tuple(dimensions), tuple(_flatten(data)))

    @property
    def ndim(self) -> int:
        return len(self.dimensions)


WireValue = Null | Text | Int | Float | Bool | Bytes | Opaque | Array


def _flatten(data: Iterable) -> Iterable:
    for item in data:
        if isinstance(item, list):
            yield from _flatten(item)
        else:
            yield item


def text_array(values: list) -> Array:
    return Array.from_list(Kind.TEXT, None, values)


def int2_array(values: list) -> Array:
    return Array.from_list(Kind.INT, 2, values)


def int4_array(values: list) -> Array:
    return Array.from_list(Kind.INT, 4, values)


def int8_array(values: list) -> Array:
    return Array.from_list(Kind.INT, 8, values)


def float4_array(values: list) -> Array:
    return Array.from_list(Kind.FLOAT, 4, values)


def float8_array(values: list) -> Array:
    return Array.from_list(Kind.FLOAT, 8, values)


def bytea_array(values: list) -> Array:
    return Array.from_list(Kind.BYTES, None, values)


def decode_name(name: Any) -> Any:
    """Decode a column name reported as bytes.
    """
    if not isinstance(name, bytes | bytearray | memoryview):
        return name
    try:
        return bytes(name).decode('utf-8')
    except UnicodeDecodeError as e:
        raise RowSourceError(f'column name {bytes(name)!r} is not valid UTF-8') from e


class Column:
    """Result column descriptor.

    The position of a Column in a row's column list pairs it with the value
    at the same position.
    """

    __slots__ = ('name', 'type_code')

    def __init__(self, name: str | bytes, type_code: Any = None) -> None:
        self.name = decode_name(name)
        self.type_code = type_code

    @classmethod
    def from_cursor_description(cls, description_item: Any) -> Self:
        """Create a Column from a psycopg cursor description item.
        """
        return cls(getattr(description_item, 'name', None) or description_item[0],
                   getattr(description_item, 'type_code', None))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Column):
            return NotImplemented
        return (self.name, self.type_code) == (other.name, other.type_code)

    def __hash__(self) -> int:
        return hash((self.name, self.type_code))

    def __repr__(self) -> str:
        return f'Column(name={self.name!r}, type_code={self.type_code!r})'


def columns_from_cursor_description(cursor: Any) -> list[Column]:
    """Create Column objects directly from a cursor description.
    """
    if cursor.description is None:
        return []
    return [Column.from_cursor_description(item) for item in cursor.description]


# Python values -> wire values

_NUMPY_INT_WIDTHS: dict[type, int] = {np.int16: 2, np.int32: 4, np.int64: 8}
_NUMPY_FLOAT_WIDTHS: dict[type, int] = {np.float32: 4, np.float64: 8}


def to_wire(value: Any) -> WireValue:
    """Wrap a plain Python value into a wire value.

    Python ints and floats are 8 bytes wide, numpy scalars keep their
    width. Lists are not inferred, build arrays explicitly with the
    `*_array` helpers since their element width is ambiguous.
    """
    if isinstance(value, WireValue):
        return value
    if value is None:
        return Null()
    if isinstance(value, bool | np.bool_):
        return Bool(bool(value))
    if type(value) in _NUMPY_INT_WIDTHS:
        return Int(int(value), _NUMPY_INT_WIDTHS[type(value)])
    if type(value) in _NUMPY_FLOAT_WIDTHS:
        return Float(float(value), _NUMPY_FLOAT_WIDTHS[type(value)])
    if isinstance(value, int):
        return Int(value, 8)
    if isinstance(value, float):
        return Float(value, 8)
    if isinstance(value, str):
        return Text(value)
    if isinstance(value, bytes | bytearray | memoryview):
        return Bytes(bytes(value))
    return Opaque(value)


# PostgreSQL OIDs -> wire values

_oid = lambda x: pg_types.get(x).oid
_aoid = lambda x: pg_types.get(x).array_oid

postgres_scalars: dict[int, tuple[Kind, int | None]] = {}

for v in ['"char"', 'bpchar', 'varchar', 'text', 'name']:
    postgres_scalars[_oid(v)] = (Kind.TEXT, None)

postgres_scalars[_oid('int2')] = (Kind.INT, 2)
postgres_scalars[_oid('int4')] = (Kind.INT, 4)
postgres_scalars[_oid('int8')] = (Kind.INT, 8)
postgres_scalars[_oid('float4')] = (Kind.FLOAT, 4)
postgres_scalars[_oid('float8')] = (Kind.FLOAT, 8)
postgres_scalars[_oid('bool')] = (Kind.BOOL, None)
postgres_scalars[_oid('bytea')] = (Kind.BYTES, None)

# only these array types have a coercion rule, other arrays stay opaque
postgres_arrays: dict[int, tuple[Kind, int | None]] = {
    _aoid(name): postgres_scalars[_oid(name)]
    for name in ['"char"', 'bpchar', 'varchar', 'text', 'name',
                 'int2', 'int4', 'int8', 'float4', 'float8', 'bytea']
}


def wire_from_postgres(type_code: int | None, value: Any) -> WireValue:
    """Wrap a value returned by psycopg using the column's type OID.

    Unknown OIDs fall back to `to_wire` inference.
    """
    if value is None:
        return Null()
    if type_code in postgres_arrays:
        kind, width = postgres_arrays[type_code]
        return Array.from_list(kind, width, value)
    if type_code in postgres_scalars:
        kind, width = postgres_scalars[type_code]
        match kind:
            case Kind.TEXT:
                return Text(value)
            case Kind.INT:
                return Int(int(value), width)
            case Kind.FLOAT:
                return Float(float(value), width)
            case Kind.BOOL:
                return Bool(bool(value))
            case Kind.BYTES:
                return Bytes(bytes(value))
    if type_code is None:
        return to_wire(value)
    if isinstance(value, list):
        logger.debug(f'No coercion rule for array type {type_code}, value kept opaque')
    return Opaque(value)
