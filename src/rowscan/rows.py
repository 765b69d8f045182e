"""
Row sources feeding the row mapper.

A row source is positioned on one result row and exposes its column
descriptors, its values and the last error seen while reading. Moving
between rows is up to the caller.
"""
import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

import psycopg
from rowscan.exceptions import RowSourceError
from rowscan.types import Column, WireValue, columns_from_cursor_description
from rowscan.types import to_wire, wire_from_postgres

logger = logging.getLogger(__name__)


@runtime_checkable
class RowSource(Protocol):
    """Interface consumed by the row mapper.
    """

    def columns(self) -> Sequence[Column]:
        """Column descriptors of the current row, in value order."""
        ...

    def values(self) -> Sequence[WireValue]:
        """Values of the current row, one per column."""
        ...

    def error(self) -> BaseException | None:
        """Error seen while reading rows, None if there is none."""
        ...


class StaticRows:
    """In-memory row source holding a single row.

    Columns may be given as names or Column objects, values as wire values
    or plain Python values. `error` is reported through error(), `fetch_error`
    is raised by values().
    """

    def __init__(self, columns: Sequence[str | bytes | Column], values: Sequence[Any],
                 error: BaseException | None = None,
                 fetch_error: BaseException | None = None) -> None:
        self._columns = [c if isinstance(c, Column) else Column(c) for c in columns]
        self._values = [to_wire(v) for v in values]
        self._error = error
        self._fetch_error = fetch_error

    def columns(self) -> list[Column]:
        return self._columns

    def values(self) -> list[WireValue]:
        if self._fetch_error is not None:
            raise self._fetch_error
        return list(self._values)

    def error(self) -> BaseException | None:
        return self._error


class CursorRows:
    """Row source over a psycopg cursor.

    The caller advances the cursor one row at a time and maps each row::

        rows = CursorRows(cursor)
        while rows.advance():
            map_row(dest, rows)

    Iterating a CursorRows does the same and raises a captured driver error
    once the rows run out. Values are converted with the PostgreSQL type OID
    of each column and can be fetched once per row.
    """

    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor
        self._columns: list[Column] | None = None
        self._row: Sequence[Any] | None = None
        self._consumed = False
        self._error: BaseException | None = None

    def columns(self) -> list[Column]:
        if self._columns is None:
            self._columns = columns_from_cursor_description(self.cursor)
        return self._columns

    def advance(self) -> bool:
        """Fetch the next row, False at the end of the result or on a driver error.
        """
        self._row = None
        if self._error is not None:
            return False
        try:
            row = self.cursor.fetchone()
        except psycopg.Error as e:
            logger.debug(f'Error fetching row: {e}')
            self._error = e
            return False
        if row is None:
            return False
        self._row = list(row.values()) if isinstance(row, Mapping) else row
        self._consumed = False
        return True

    def values(self) -> list[WireValue]:
        if self._row is None:
            raise RowSourceError('no current row, call advance() first')
        if self._consumed:
            raise RowSourceError('values of the current row were already fetched')
        self._consumed = True
        return [wire_from_postgres(column.type_code, value)
                for column, value in zip(self.columns(), self._row)]

    def error(self) -> BaseException | None:
        return self._error

    def __iter__(self) -> Iterator['CursorRows']:
        while self.advance():
            yield self
        if self._error is not None:
            raise self._error
