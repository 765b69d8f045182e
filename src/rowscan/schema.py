"""
Destination schema descriptors.

A schema lists the leaf fields of a destination dataclass that can receive
column values. Fields of embedded dataclasses are flattened into the same
name space, so a row column ``city`` reaches ``dest.address.city``.

Name collisions are resolved by depth first, the shallowest declaration
wins. Collisions at the same depth go to the field declared first, walking
the dataclass fields depth-first in declaration order.

Fields named with a leading underscore are never assigned. An embedded
dataclass field is traversed even when its own name is private, so the
public fields of ``_address: Address`` still receive columns.

Annotations are resolved per field. One that can not be evaluated, such as
a name imported only under ``TYPE_CHECKING``, makes an opaque field that
accepts any value.
"""
import dataclasses
import inspect
import logging
import sys
import types
import typing
from dataclasses import dataclass
from typing import Any, get_args, get_origin

import numpy as np
from rowscan.cache import cacheable_schema
from rowscan.types import Kind

logger = logging.getLogger(__name__)

SCALAR_KINDS: dict[type, tuple[Kind, int | None]] = {
    str: (Kind.TEXT, None),
    bytes: (Kind.BYTES, None),
    bool: (Kind.BOOL, None),
    int: (Kind.INT, 8),
    np.int16: (Kind.INT, 2),
    np.int32: (Kind.INT, 4),
    np.int64: (Kind.INT, 8),
    float: (Kind.FLOAT, 8),
    np.float32: (Kind.FLOAT, 4),
    np.float64: (Kind.FLOAT, 8),
}


@dataclass(frozen=True, slots=True)
class FieldType:
    """Declared type of a destination field.

    For sequence fields `kind`, `width` and `python_type` describe the
    element and `sequence` names the container ('list' or 'ndarray').
    A `python_type` of None on an opaque field accepts any value.
    """
    kind: Kind
    width: int | None = None
    python_type: Any = None
    nullable: bool = False
    sequence: str | None = None

    @property
    def is_sequence(self) -> bool:
        return self.sequence is not None


@dataclass(frozen=True, slots=True)
class FieldSpec:
    name: str
    path: tuple[str, ...]
    type: FieldType
    depth: int
    settable: bool

    def resolve_owner(self, dest: Any) -> Any | None:
        """Return the object holding this field, None if an embedded record is missing.
        """
        owner = dest
        for attr in self.path[:-1]:
            owner = getattr(owner, attr, None)
            if owner is None:
                return None
        return owner


@dataclass(frozen=True, slots=True)
class Schema:
    cls: type
    fields: tuple[FieldSpec, ...]

    def __len__(self) -> int:
        return len(self.fields)


def is_record_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Strip None from a union annotation.

    Returns the remaining annotation and whether None was part of it.
    """
    if get_origin(annotation) not in {types.UnionType, typing.Union}:
        return annotation, False
    args = get_args(annotation)
    rest = tuple(a for a in args if a is not type(None))
    nullable = len(rest) != len(args)
    if len(rest) == 1:
        return rest[0], nullable
    return typing.Union[rest], nullable


def resolve_field_type(annotation: Any) -> FieldType:
    """Map a field annotation to its kind, width and container.
    """
    inner, nullable = unwrap_optional(annotation)
    if inner is Any or inner is object:
        return FieldType(Kind.OPAQUE, nullable=True)
    if inner in SCALAR_KINDS:
        kind, width = SCALAR_KINDS[inner]
        return FieldType(kind, width, inner, nullable)

    origin = get_origin(inner)
    if origin is list:
        args = get_args(inner)
        element = args[0] if args else Any
        if element in SCALAR_KINDS:
            kind, width = SCALAR_KINDS[element]
            return FieldType(kind, width, element, nullable, sequence='list')
        return FieldType(Kind.OPAQUE, None, list, nullable, sequence='list')
    if origin is np.ndarray:
        dtype_args = get_args(get_args(inner)[-1]) if get_args(inner) else ()
        scalar = dtype_args[0] if dtype_args else None
        if scalar in SCALAR_KINDS and SCALAR_KINDS[scalar][0] in {Kind.INT, Kind.FLOAT}:
            kind, width = SCALAR_KINDS[scalar]
            return FieldType(kind, width, scalar, nullable, sequence='ndarray')
        return FieldType(Kind.OPAQUE, None, np.ndarray, nullable, sequence='ndarray')
    if inner is np.ndarray:
        return FieldType(Kind.OPAQUE, None, np.ndarray, nullable, sequence='ndarray')

    return FieldType(Kind.OPAQUE, None, inner, nullable)


def _resolve_annotation(cls: type, name: str, annotation: Any) -> Any:
    """Evaluate one string annotation in the namespace of the class declaring it.

    An annotation that can not be evaluated resolves to Any.
    """
    owner = next((c for c in cls.__mro__ if name in inspect.get_annotations(c)), cls)
    module = sys.modules.get(owner.__module__)
    globalns = vars(module) if module is not None else {}
    try:
        return eval(annotation, globalns, dict(vars(owner)))
    except Exception as e:
        logger.debug(f'Unresolved annotation {annotation!r} on {cls.__qualname__}.{name}: {e}')
        return Any


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        logger.debug(f'Resolving annotations of {cls.__qualname__} field by field: {e}')
    hints = {}
    for f in dataclasses.fields(cls):
        annotation = f.type
        if isinstance(annotation, str):
            annotation = _resolve_annotation(cls, f.name, annotation)
        hints[f.name] = annotation
    return hints


def _walk(cls: type, prefix: tuple[str, ...], depth: int,
          seen: frozenset, out: list[FieldSpec]) -> None:
    hints = _type_hints(cls)
    frozen = cls.__dataclass_params__.frozen
    for f in dataclasses.fields(cls):
        annotation = hints.get(f.name, f.type)
        inner, _ = unwrap_optional(annotation)
        if is_record_type(inner) and inner not in seen:
            # embedded records are traversed whatever their own name
            _walk(inner, (*prefix, f.name), depth + 1, seen | {inner}, out)
            continue
        if f.name.startswith('_'):
            continue
        out.append(FieldSpec(
            name=f.name,
            path=(*prefix, f.name),
            type=resolve_field_type(annotation),
            depth=depth,
            settable=not frozen,
        ))


def collect_fields(cls: type) -> dict[str, FieldSpec]:
    """Collect the assignable leaf fields of a dataclass type.

    Returns an ordered mapping of field name to field descriptor, shallowest
    fields first and declaration order within a depth.
    """
    found: list[FieldSpec] = []
    _walk(cls, (), 0, frozenset({cls}), found)

    # stable sort keeps declaration order within a depth
    fields: dict[str, FieldSpec] = {}
    for entry in sorted(found, key=lambda s: s.depth):
        if entry.name in fields:
            logger.debug(f'Field {".".join(entry.path)} shadowed by '
                         f'{".".join(fields[entry.name].path)} on {cls.__qualname__}')
            continue
        fields[entry.name] = entry
    return fields


@cacheable_schema('schema')
def get_schema(cls: type) -> Schema:
    """Build the schema descriptor for a destination dataclass type.
    """
    return Schema(cls, tuple(collect_fields(cls).values()))
