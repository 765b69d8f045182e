"""
Scan one result row into a dataclass instance.

Columns are matched to fields by name. Each field receives at most one
column per call, unmatched columns are skipped and unmatched fields keep
their current value. The first value that does not fit its field aborts the
row, fields written before it keep their new values.
"""
import dataclasses
import logging
import types
import typing
import weakref
from typing import Any, get_args, get_origin

from rowscan.coercion import coerce_array, describe
from rowscan.exceptions import DestinationAbsentError
from rowscan.exceptions import EmptyDestinationError
from rowscan.exceptions import IncompatibleDestinationError
from rowscan.exceptions import NotACompositeError, NotAReferenceError
from rowscan.exceptions import ReferenceIsAbsentError, RowSourceError
from rowscan.exceptions import ScanError
from rowscan.matcher import NameMatcher
from rowscan.options import ScanOptions
from rowscan.rows import RowSource
from rowscan.schema import FieldSpec, FieldType, Schema, get_schema
from rowscan.schema import is_record_type
from rowscan.types import Array, Bool, Bytes, Float, Int, Kind, Null
from rowscan.types import Text, WireValue, decode_name, to_wire

logger = logging.getLogger(__name__)

IMMUTABLE_TYPES = (int, float, complex, str, bytes, tuple, frozenset, range)


class _Mismatch(Exception):
    """Internal signal that a scalar value does not fit a field."""


def _resolve_destination(dest: Any) -> tuple[Any, type]:
    """Validate the destination and return it with its dataclass type.
    """
    if dest is None:
        raise DestinationAbsentError

    # isinstance() looks up __class__, which a dead proxy refuses
    if type(dest) in weakref.ProxyTypes:
        try:
            cls = dest.__class__
        except ReferenceError as e:
            raise ReferenceIsAbsentError from e
    elif isinstance(dest, weakref.ReferenceType):
        target = dest()
        if target is None:
            raise ReferenceIsAbsentError
        return _resolve_destination(target)
    else:
        if isinstance(dest, type):
            raise NotAReferenceError(f'destination is the class {dest.__qualname__}, not an instance')
        if isinstance(dest, IMMUTABLE_TYPES):
            raise NotAReferenceError(f'destination is an immutable {type(dest).__name__} value')
        cls = type(dest)

    if not is_record_type(cls):
        raise NotACompositeError(f'destination {cls.__qualname__} is not a dataclass instance')
    return dest, cls


def _column_name(column: Any) -> str:
    return str(decode_name(getattr(column, 'name', column)))


def _runtime_types(tp: Any) -> tuple[type, ...]:
    if get_origin(tp) in {types.UnionType, typing.Union}:
        return tuple(t for arg in get_args(tp) for t in _runtime_types(arg))
    tp = get_origin(tp) or tp
    return (tp,) if isinstance(tp, type) else ()


def _accepts_type(value: Any, tp: Any, lenient: bool) -> bool:
    accepted = _runtime_types(tp)
    if lenient:
        return isinstance(value, accepted)
    return type(value) in accepted


def _fits_width(wire_width: int, field_width: int, lenient: bool) -> bool:
    if lenient:
        return field_width >= wire_width
    return field_width == wire_width


def convert_scalar(value: WireValue, ftype: FieldType, lenient: bool = False) -> Any:
    """Convert a non-array wire value into the field's declared type.

    Raises _Mismatch when the value can not be held by the field.
    """
    if isinstance(value, Null):
        if ftype.nullable:
            return None
        raise _Mismatch(f'NULL into non-optional {describe(ftype)}')

    if ftype.kind is Kind.OPAQUE:
        if ftype.python_type is None or _accepts_type(value.value, ftype.python_type, lenient):
            return value.value
        raise _Mismatch(f'{type(value.value).__name__} into {describe(ftype)}')

    if ftype.is_sequence:
        raise _Mismatch(f'scalar {type(value.value).__name__} into {describe(ftype)}')

    match value:
        case Text(value=v) if ftype.kind is Kind.TEXT:
            return v
        case Bytes(value=v) if ftype.kind is Kind.BYTES:
            return bytes(v)
        case Bool(value=v) if ftype.kind is Kind.BOOL:
            return v
        case Int(value=v, width=w) if ftype.kind is Kind.INT and _fits_width(w, ftype.width, lenient):
            return ftype.python_type(v)
        case Float(value=v, width=w) if ftype.kind is Kind.FLOAT and _fits_width(w, ftype.width, lenient):
            return ftype.python_type(v)

    width = getattr(value, 'width', None)
    source = f'{type(value).__name__.lower()}{width or ""}'
    raise _Mismatch(f'{source} into {describe(ftype)}')


class RowMapper:
    """Maps result rows into dataclass instances.

    The mapper holds no per-row state, one instance can serve any number
    of destinations and row sources.
    """

    def __init__(self, options: ScanOptions | None = None, **kwargs: Any) -> None:
        self.options = options or ScanOptions(**kwargs)

    def schema_for(self, cls: type) -> Schema:
        return get_schema(cls, bypass_cache=not self.options.cache_schema)

    def map_row(self, dest: Any, rows: RowSource) -> None:
        """Scan the current row of `rows` into `dest`.

        Raises
            DestinationError: destination can not receive a row, nothing was read
            RowSourceError: column and value counts differ
            NotASimpleArrayError: an array column is not one-dimensional
            IncompatibleDestinationError: a field can not hold its column value
            Any error reported by the row source, unchanged
        """
        dest, cls = _resolve_destination(dest)
        schema = self.schema_for(cls)
        if not schema.fields:
            raise EmptyDestinationError(f'destination {cls.__qualname__} has no assignable fields')

        error = rows.error()
        if error is not None:
            raise error

        columns = rows.columns()
        values = rows.values()
        if len(columns) != len(values):
            raise RowSourceError(f'row has {len(columns)} columns but {len(values)} values')

        matcher = self.options.matcher
        remaining = list(schema.fields)
        for column, value in zip(columns, values):
            if not remaining:
                break
            name = _column_name(column)
            field = self._take_field(remaining, name, matcher)
            if field is None:
                logger.debug(f'No field for column {name}, skipped')
                continue
            owner = field.resolve_owner(dest) if field.settable else None
            if owner is None:
                logger.debug(f'Field {".".join(field.path)} is not settable, column {name} skipped')
                continue
            self._assign(owner, field, name, to_wire(value))

    @staticmethod
    def _take_field(remaining: list[FieldSpec], column: str, matcher: NameMatcher) -> FieldSpec | None:
        """Remove and return the first remaining field matching the column.
        """
        for i, field in enumerate(remaining):
            if matcher(field.name, column):
                return remaining.pop(i)
        return None

    def _assign(self, owner: Any, field: FieldSpec, column: str, value: WireValue) -> None:
        if isinstance(value, Array):
            try:
                converted = coerce_array(value, field, column)
            except ScanError:
                raise
            except Exception as e:
                raise IncompatibleDestinationError(field.name, column, str(e)) from e
        else:
            converted = self._convert(field, column, value)

        try:
            setattr(owner, field.path[-1], converted)
        except Exception as e:
            raise IncompatibleDestinationError(field.name, column, str(e)) from e

    def _convert(self, field: FieldSpec, column: str, value: WireValue) -> Any:
        try:
            return convert_scalar(value, field.type, self.options.lenient)
        except _Mismatch as e:
            raise IncompatibleDestinationError(field.name, column, str(e)) from None
        except Exception as e:
            raise IncompatibleDestinationError(field.name, column, str(e)) from e


def map_row(dest: Any, rows: RowSource, matcher: NameMatcher | None = None,
            options: ScanOptions | None = None) -> None:
    """Scan the current row of `rows` into the dataclass instance `dest`.

    `matcher` overrides the name matcher of `options` for this call.
    """
    if options is None:
        options = ScanOptions(matcher=matcher)
    elif matcher is not None:
        options = dataclasses.replace(options, matcher=matcher)
    RowMapper(options).map_row(dest, rows)
