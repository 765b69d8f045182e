"""
Tests for the psycopg cursor row source, using a stand-in cursor.
"""
import logging
from dataclasses import dataclass, field

import numpy as np
import psycopg
import pytest
from psycopg.postgres import types as pg_types
from rowscan import CursorRows, RowSource, StaticRows, map_row
from rowscan.exceptions import RowSourceError
from rowscan.types import Int, Kind, Text


class Description:
    def __init__(self, name, type_name, array=False):
        info = pg_types.get(type_name)
        self.name = name
        self.type_code = info.array_oid if array else info.oid


class FakeCursor:
    """Minimal cursor returning prepared rows from fetchone()."""

    def __init__(self, description, rows, fail_after=None):
        self.description = description
        self._rows = list(rows)
        self._fail_after = fail_after
        self._fetched = 0

    def fetchone(self):
        if self._fail_after is not None and self._fetched >= self._fail_after:
            raise psycopg.OperationalError('server closed the connection unexpectedly')
        self._fetched += 1
        return self._rows.pop(0) if self._rows else None


@dataclass
class Item:
    bigid: int = 0
    name: str = ''
    counts: list[np.int16] = field(default_factory=list)


DESCRIPTION = [
    Description('bigid', 'int8'),
    Description('name', 'text'),
    Description('counts', 'int2', array=True),
]


def test_row_sources_satisfy_protocol():
    assert isinstance(CursorRows(FakeCursor([], [])), RowSource)
    assert isinstance(StaticRows([], []), RowSource)


def test_cursor_rows_converts_by_type_code():
    rows = CursorRows(FakeCursor(DESCRIPTION, [(7, 'xy', [1, 2])]))
    assert rows.advance()

    assert [c.name for c in rows.columns()] == ['bigid', 'name', 'counts']
    values = rows.values()
    assert values[0] == Int(7, 8)
    assert values[1] == Text('xy')
    assert (values[2].element, values[2].width, values[2].elements) == (Kind.INT, 2, (1, 2))


def test_cursor_rows_maps_each_row():
    """Test that the caller drives iteration and maps once per row"""
    cursor = FakeCursor(DESCRIPTION, [(1, 'a', [1]), (2, 'b', [2, 3])])
    items = []
    for rows in CursorRows(cursor):
        item = Item()
        map_row(item, rows)
        items.append(item)

    assert items == [
        Item(bigid=1, name='a', counts=[np.int16(1)]),
        Item(bigid=2, name='b', counts=[np.int16(2), np.int16(3)]),
    ]


def test_cursor_rows_accepts_dict_rows():
    rows = CursorRows(FakeCursor(DESCRIPTION, [{'bigid': 3, 'name': 'c', 'counts': []}]))
    assert rows.advance()
    item = Item()
    map_row(item, rows)
    assert item == Item(bigid=3, name='c', counts=[])


def test_values_can_be_fetched_once_per_row():
    rows = CursorRows(FakeCursor(DESCRIPTION, [(1, 'a', [1]), (2, 'b', [2])]))
    with pytest.raises(RowSourceError):
        rows.values()

    assert rows.advance()
    rows.values()
    with pytest.raises(RowSourceError):
        rows.values()

    assert rows.advance()
    assert rows.values()[0] == Int(2, 8)
    assert not rows.advance()


def test_driver_error_is_reported():
    """Test that a fetch failure is kept and surfaced through error()"""
    rows = CursorRows(FakeCursor(DESCRIPTION, [(1, 'a', [1])], fail_after=1))
    assert rows.advance()
    assert not rows.advance()
    assert isinstance(rows.error(), psycopg.OperationalError)
    assert not rows.advance()

    with pytest.raises(psycopg.OperationalError):
        map_row(Item(), rows)


def test_driver_error_is_not_logged_as_error(caplog):
    rows = CursorRows(FakeCursor(DESCRIPTION, [], fail_after=0))
    with caplog.at_level(logging.DEBUG, logger='rowscan.rows'):
        assert not rows.advance()

    assert isinstance(rows.error(), psycopg.OperationalError)
    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert any('Error fetching row' in r.getMessage() for r in caplog.records)


def test_iteration_raises_driver_error_at_end():
    cursor = FakeCursor(DESCRIPTION, [(1, 'a', [1])], fail_after=1)
    seen = []
    with pytest.raises(psycopg.OperationalError):
        for rows in CursorRows(cursor):
            item = Item()
            map_row(item, rows)
            seen.append(item.bigid)
    assert seen == [1]


if __name__ == '__main__':
    __import__('pytest').main([__file__])
