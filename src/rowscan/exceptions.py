"""
Row scanning exception classes.

Every error carries an ``ErrorKind`` tag so callers can branch on the kind
without caring about the class hierarchy.
"""
import enum


class ErrorKind(enum.Enum):
    DESTINATION_ABSENT = 'destination_absent'
    NOT_A_REFERENCE = 'not_a_reference'
    REFERENCE_IS_ABSENT = 'reference_is_absent'
    NOT_A_COMPOSITE = 'not_a_composite'
    EMPTY_DESTINATION = 'empty_destination'
    ROW_SOURCE = 'row_source'
    NOT_A_SIMPLE_ARRAY = 'not_a_simple_array'
    INCOMPATIBLE_DESTINATION = 'incompatible_destination'


class ScanError(Exception):
    """Base class for all row scanning errors.
    """
    kind: ErrorKind | None = None


class ValidationError(ScanError):
    """Error in input validation.
    """


class DestinationError(ValidationError):
    """Destination can not receive a row.
    """


class DestinationAbsentError(DestinationError):
    """Destination is None.
    """
    kind = ErrorKind.DESTINATION_ABSENT

    def __init__(self, message: str = 'destination is None') -> None:
        super().__init__(message)


class NotAReferenceError(DestinationError):
    """Destination is a class or an immutable value instead of an instance.
    """
    kind = ErrorKind.NOT_A_REFERENCE

    def __init__(self, message: str = 'destination is not a mutable instance') -> None:
        super().__init__(message)


class ReferenceIsAbsentError(DestinationError):
    """Destination is a reference whose referent no longer exists.
    """
    kind = ErrorKind.REFERENCE_IS_ABSENT

    def __init__(self, message: str = 'destination reference points to nothing') -> None:
        super().__init__(message)


class NotACompositeError(DestinationError):
    """Dereferenced destination is not a dataclass instance.
    """
    kind = ErrorKind.NOT_A_COMPOSITE

    def __init__(self, message: str = 'destination is not a dataclass instance') -> None:
        super().__init__(message)


class EmptyDestinationError(DestinationError):
    """Destination has no collectible fields.
    """
    kind = ErrorKind.EMPTY_DESTINATION

    def __init__(self, message: str = 'destination has no fields') -> None:
        super().__init__(message)


class RowSourceError(ScanError):
    """Row source is in an inconsistent state.
    """
    kind = ErrorKind.ROW_SOURCE


class TypeConversionError(ScanError):
    """Error converting a column value into a field.
    """


class NotASimpleArrayError(TypeConversionError):
    """Array column is not one-dimensional.
    """
    kind = ErrorKind.NOT_A_SIMPLE_ARRAY

    def __init__(self, field: str, column: str, dimensions: int) -> None:
        self.field = field
        self.column = column
        self.dimensions = dimensions
        super().__init__(
            f'column {column} holds a {dimensions}-dimensional array, '
            f'field {field} needs a simple one')


class IncompatibleDestinationError(TypeConversionError):
    """Field type can not hold the column value.
    """
    kind = ErrorKind.INCOMPATIBLE_DESTINATION

    def __init__(self, field: str, column: str, reason: str = 'destination has incompatible type') -> None:
        self.field = field
        self.column = column
        self.reason = reason
        super().__init__(f"field {field} can't hold result {column}, {reason}")
