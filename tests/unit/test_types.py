"""
Tests for abstract types and value helpers.
"""
import datetime
import decimal

import pytest
from mssql_schema.types import Expression, SimpleType, extract_simple_type
from mssql_schema.types import is_numeric, parse_literal, quote_value, to_bool


@pytest.mark.parametrize(('value', 'expected'), [
    ('true', True), ('Yes', True), ('on', True), ('1', True), (1, True),
    ('false', False), ('off', False), ('0', False), ('', False), (0, False), (None, False),
])
def test_to_bool(value, expected):
    assert to_bool(value) is expected


def test_is_numeric():
    assert is_numeric(5)
    assert is_numeric('1.5')
    assert is_numeric(decimal.Decimal('2'))
    assert not is_numeric(True)
    assert not is_numeric('abc')
    assert not is_numeric(None)


@pytest.mark.parametrize('value', [
    'nan', 'NaN', 'inf', '-inf', 'Infinity', float('nan'), float('inf'),
    decimal.Decimal('NaN'), decimal.Decimal('Infinity'),
])
def test_is_numeric_rejects_non_finite(value):
    assert not is_numeric(value)


def test_quote_value():
    assert quote_value(None) == 'NULL'
    assert quote_value(True) == '1'
    assert quote_value(12) == '12'
    assert quote_value(decimal.Decimal('1.50')) == '1.50'
    assert quote_value("it's") == "'it''s'"
    assert quote_value(Expression('GETDATE()')) == 'GETDATE()'


def test_expression_renders_verbatim():
    assert str(Expression('CURRENT_TIMESTAMP')) == 'CURRENT_TIMESTAMP'


@pytest.mark.parametrize(('db_type', 'size', 'expected'), [
    ('bit', None, SimpleType.BOOLEAN),
    ('tinyint', None, SimpleType.TINY_INT),
    ('smallint', None, SimpleType.SMALL_INT),
    ('int', 10, SimpleType.INTEGER),
    ('bigint', None, SimpleType.BIG_INT),
    ('numeric', None, SimpleType.DECIMAL),
    ('real', None, SimpleType.FLOAT),
    ('float', 53, SimpleType.DOUBLE),
    ('smallmoney', None, SimpleType.MONEY),
    ('smalldatetime', None, SimpleType.DATETIME),
    ('datetimeoffset', None, SimpleType.TIMESTAMP),
    ('date', None, SimpleType.DATE),
    ('time', None, SimpleType.TIME),
    ('image', None, SimpleType.BINARY),
    ('varbinary', None, SimpleType.BINARY),
    ('ntext', None, SimpleType.TEXT),
    ('table', None, SimpleType.TABLE),
    ('nvarchar', 20, SimpleType.STRING),
    (None, None, SimpleType.STRING),
])
def test_extract_simple_type(db_type, size, expected):
    assert extract_simple_type(db_type, size) == expected


class TestParseLiteral:

    def test_server_functions(self):
        assert parse_literal('datetime', 'getdate') == Expression('GETDATE()')
        assert parse_literal('string', 'newid') == Expression('NEWID()')
        assert parse_literal('timestamp', 'CURRENT_TIMESTAMP') == Expression('CURRENT_TIMESTAMP')

    def test_null(self):
        assert parse_literal('integer', 'NULL') is None
        assert parse_literal('integer', None) is None

    def test_typed_values(self):
        assert parse_literal('integer', '7') == 7
        assert parse_literal('float', '1.5') == 1.5
        assert parse_literal('decimal', '2.25') == decimal.Decimal('2.25')
        assert parse_literal('boolean', '1') is True
        assert parse_literal('time', '10:30:00') == datetime.time(10, 30)
        assert parse_literal('datetime', '2024-01-02 03:04:05') == datetime.datetime(2024, 1, 2, 3, 4, 5)

    def test_unparseable_left_as_text(self):
        assert parse_literal('integer', 'abc') == 'abc'
        assert parse_literal('string', 'hello') == 'hello'
