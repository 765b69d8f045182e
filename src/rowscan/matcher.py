"""
Name matching between dataclass fields and result columns.

A matcher takes the field name and the column name and returns True when
the column should be written into the field.
"""
from collections.abc import Callable

NameMatcher = Callable[[str, str], bool]


def default_name_matcher(field_name: str, column_name: str) -> bool:
    """Case-insensitive equality using Unicode case folding.

    Empty names never match.
    """
    if not field_name or not column_name:
        return False
    return field_name.casefold() == column_name.casefold()


def exact_name_matcher(field_name: str, column_name: str) -> bool:
    """Case-sensitive equality, empty names never match."""
    if not field_name or not column_name:
        return False
    return field_name == column_name


def snake_case_name_matcher(field_name: str, column_name: str) -> bool:
    """Like the default matcher but ignoring underscores.

    `created_at`, `createdAt` and `CREATED_AT` all match each other.
    """
    return default_name_matcher(field_name.replace('_', ''),
                                column_name.replace('_', ''))
