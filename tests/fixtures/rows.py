"""
Row source fixtures for scan tests.

Usage:
    def test_scan(make_rows):
        rows = make_rows(['name'], ['xy'])
"""
import numpy as np
import pytest
from rowscan import StaticRows, bytea_array, int4_array, text_array


@pytest.fixture
def make_rows():
    """
    Fixture that provides a factory function to create in-memory row sources.

    Returns
        Factory function taking column names, values and optional errors
    """
    def factory(columns, values, error=None, fetch_error=None):
        return StaticRows(columns, values, error=error, fetch_error=fetch_error)

    return factory


@pytest.fixture
def scantest_row():
    """Default row of the scantest table used by the integration tests.

    bigid bigint 7, string text 'xy', n real 42.1, r double precision
    -0.000001, a text[] {AA,BB}, x bytea \\x010203, xx bytea[] {0102,x},
    xa int[] {11,22}
    """
    columns = ['bigid', 'string', 'n', 'r', 'a', 'x', 'xx', 'xa']
    values = [
        7,
        'xy',
        np.float32(42.1),
        -0.000001,
        text_array(['AA', 'BB']),
        b'\x01\x02\x03',
        bytea_array([b'0102', b'x']),
        int4_array([11, 22]),
    ]
    return StaticRows(columns, values)
