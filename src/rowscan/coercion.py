"""
Array to sequence coercion.

The table below is closed: an array column can only be written into a
sequence field listed for its element type. Integer and float arrays may be
widened into a wider element type, never narrowed. Only one-dimensional
arrays are accepted.

Every coercion builds a new list or ndarray, so the destination never
shares storage with the row source.
"""
from typing import Any

import numpy as np
from rowscan.exceptions import IncompatibleDestinationError
from rowscan.exceptions import NotASimpleArrayError
from rowscan.schema import FieldSpec, FieldType
from rowscan.types import ZERO_VALUES, Array, Kind

ArrayKey = tuple[Kind, int | None]

ARRAY_RULES: dict[ArrayKey, frozenset[ArrayKey]] = {
    (Kind.TEXT, None): frozenset({(Kind.TEXT, None)}),
    (Kind.INT, 2): frozenset({(Kind.INT, 2), (Kind.INT, 4), (Kind.INT, 8)}),
    (Kind.INT, 4): frozenset({(Kind.INT, 4), (Kind.INT, 8)}),
    (Kind.INT, 8): frozenset({(Kind.INT, 8)}),
    (Kind.FLOAT, 4): frozenset({(Kind.FLOAT, 4), (Kind.FLOAT, 8)}),
    (Kind.FLOAT, 8): frozenset({(Kind.FLOAT, 8)}),
    (Kind.BYTES, None): frozenset({(Kind.BYTES, None)}),
}

NUMPY_DTYPES: dict[ArrayKey, type] = {
    (Kind.INT, 2): np.int16,
    (Kind.INT, 4): np.int32,
    (Kind.INT, 8): np.int64,
    (Kind.FLOAT, 4): np.float32,
    (Kind.FLOAT, 8): np.float64,
}


def describe(ftype: FieldType) -> str:
    element = getattr(ftype.python_type, '__name__', repr(ftype.python_type))
    if ftype.is_sequence:
        return f'{ftype.sequence}[{element}]'
    return element


def accepts_array(ftype: FieldType, value: Array) -> bool:
    """Check the coercion table for an array value and a field type.
    """
    if not ftype.is_sequence:
        return False
    targets = ARRAY_RULES.get((value.element, value.width), frozenset())
    return (ftype.kind, ftype.width) in targets


def coerce_array(value: Array, field: FieldSpec, column: str) -> Any:
    """Convert a one-dimensional array value into the field's sequence type.

    Raises
        IncompatibleDestinationError: field is not a sequence of a matching element type
        NotASimpleArrayError: array has more or fewer than one dimension
    """
    ftype = field.type
    if not accepts_array(ftype, value):
        raise IncompatibleDestinationError(
            field.name, column,
            f'{value.element.value}{value.width or ""} array does not fit {describe(ftype)}')
    if value.ndim != 1:
        raise NotASimpleArrayError(field.name, column, value.ndim)

    zero = ZERO_VALUES[value.element]
    elements = [zero if e is None else e for e in value.elements]

    match ftype.kind:
        case Kind.TEXT:
            return [str(e) for e in elements]
        case Kind.BYTES:
            # copy, the driver may hand out views on its own buffers
            return [bytes(e) for e in elements]
        case Kind.INT | Kind.FLOAT:
            arr = np.array(elements, dtype=NUMPY_DTYPES[(ftype.kind, ftype.width)])
            if ftype.sequence == 'ndarray':
                return arr
            if ftype.python_type in {int, float}:
                return arr.tolist()
            return list(arr)
    raise IncompatibleDestinationError(field.name, column, f'no coercion into {describe(ftype)}')
