"""
Scan database result rows into dataclass instances.

A row's columns are matched to the dataclass fields by name and each value
is written into its field after a type check:

    @dataclass
    class Item:
        name: str = ''
        tags: list[str] = field(default_factory=list)

    item = Item()
    for rows in CursorRows(cursor):
        rowscan.map_row(item, rows)

Supported field types, matched exactly unless ScanOptions(lenient=True):
- str, bytes, bool
- int (8 bytes), numpy.int16, numpy.int32, numpy.int64
- float (8 bytes), numpy.float32, numpy.float64
- list[...] of the above and numpy.typing.NDArray of the numeric types,
  filled from one-dimensional text, int2/4/8, float4/8 and bytea arrays
- any other type, assigned when the driver value has exactly that type

Fields of embedded dataclasses are flattened, the shallowest name wins.
"""
__version__ = '0.1.0'

from rowscan.cache import Cache
from rowscan.exceptions import DestinationAbsentError, DestinationError
from rowscan.exceptions import EmptyDestinationError, ErrorKind
from rowscan.exceptions import IncompatibleDestinationError
from rowscan.exceptions import NotACompositeError, NotAReferenceError
from rowscan.exceptions import NotASimpleArrayError, ReferenceIsAbsentError
from rowscan.exceptions import RowSourceError, ScanError, TypeConversionError
from rowscan.exceptions import ValidationError
from rowscan.matcher import NameMatcher, default_name_matcher
from rowscan.matcher import exact_name_matcher, snake_case_name_matcher
from rowscan.options import ScanOptions
from rowscan.rows import CursorRows, RowSource, StaticRows
from rowscan.scan import RowMapper, map_row
from rowscan.schema import FieldSpec, Schema, collect_fields, get_schema
from rowscan.types import Array, Bool, Bytes, Column, Float, Int, Kind, Null
from rowscan.types import Opaque, Text, WireValue, bytea_array, float4_array
from rowscan.types import float8_array, int2_array, int4_array, int8_array
from rowscan.types import text_array, to_wire, wire_from_postgres

__all__ = [
    'map_row',
    'RowMapper',
    'ScanOptions',
    'NameMatcher',
    'default_name_matcher',
    'exact_name_matcher',
    'snake_case_name_matcher',
    'RowSource',
    'StaticRows',
    'CursorRows',
    'Column',
    'Schema',
    'FieldSpec',
    'collect_fields',
    'get_schema',
    'Cache',
    'Kind',
    'WireValue',
    'Null',
    'Text',
    'Int',
    'Float',
    'Bool',
    'Bytes',
    'Opaque',
    'Array',
    'text_array',
    'int2_array',
    'int4_array',
    'int8_array',
    'float4_array',
    'float8_array',
    'bytea_array',
    'to_wire',
    'wire_from_postgres',
    'ErrorKind',
    'ScanError',
    'ValidationError',
    'DestinationError',
    'DestinationAbsentError',
    'NotAReferenceError',
    'ReferenceIsAbsentError',
    'NotACompositeError',
    'EmptyDestinationError',
    'RowSourceError',
    'TypeConversionError',
    'NotASimpleArrayError',
    'IncompatibleDestinationError',
]
