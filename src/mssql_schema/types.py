"""
Abstract (backend-neutral) column types and value helpers.

This module provides:
- SimpleType: the abstract type tags shared by every backend adapter
- Expression: marker for raw SQL expressions (defaults, read-time functions)
- to_bool / quote_value: coercion helpers used by the DDL pipeline
- extract_simple_type: generic native type name -> abstract type mapping
- parse_literal: generic default-literal parser
"""
import decimal
import logging
import math
from enum import StrEnum
from typing import Any, NamedTuple

import dateutil.parser

logger = logging.getLogger(__name__)


class SimpleType(StrEnum):
    """Backend-neutral column type tags.
    """
    ID = 'id'
    REF = 'ref'
    USER_ID = 'user_id'
    USER_ID_ON_CREATE = 'user_id_on_create'
    USER_ID_ON_UPDATE = 'user_id_on_update'
    STRING = 'string'
    TEXT = 'text'
    BINARY = 'binary'
    BOOLEAN = 'boolean'
    INTEGER = 'integer'
    BIG_INT = 'bigint'
    SMALL_INT = 'smallint'
    TINY_INT = 'tinyint'
    MONEY = 'money'
    FLOAT = 'float'
    DOUBLE = 'double'
    DECIMAL = 'decimal'
    DATE = 'date'
    TIME = 'time'
    TIME_TZ = 'time_tz'
    DATETIME = 'datetime'
    DATETIME_TZ = 'datetime_tz'
    TIMESTAMP = 'timestamp'
    TIMESTAMP_TZ = 'timestamp_tz'
    TIMESTAMP_ON_CREATE = 'timestamp_on_create'
    TIMESTAMP_ON_UPDATE = 'timestamp_on_update'
    TABLE = 'table'


INTEGER_TYPES = frozenset({
    SimpleType.INTEGER, SimpleType.BIG_INT, SimpleType.SMALL_INT,
    SimpleType.TINY_INT, SimpleType.ID, SimpleType.REF,
    SimpleType.USER_ID, SimpleType.USER_ID_ON_CREATE, SimpleType.USER_ID_ON_UPDATE,
})
FLOAT_TYPES = frozenset({SimpleType.FLOAT, SimpleType.DOUBLE, SimpleType.MONEY})

# server functions that show up (unparenthesised) in catalog default text
SERVER_FUNCTIONS = frozenset({
    'getdate', 'getutcdate', 'sysdatetime', 'sysutcdatetime',
    'sysdatetimeoffset', 'current_timestamp', 'newid', 'newsequentialid',
})

TRUE_STRINGS = frozenset({'1', 'true', 'on', 'yes', 'y', 't'})


class Expression(NamedTuple):
    """Raw SQL expression, rendered verbatim instead of quoted.
    """
    expression: str

    def __str__(self) -> str:
        return self.expression


def to_bool(value: Any) -> bool:
    """Loose boolean coercion for property-bag flags ('true', 'on', 1, ...).
    """
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def is_numeric(value: Any) -> bool:
    """Check whether a value is a finite number or a finite numeric string.

    'nan', 'inf' and 'infinity' are not numbers here.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float | decimal.Decimal | str):
        try:
            return math.isfinite(float(value))
        except ValueError:
            return False
    return False


def quote_value(value: Any) -> str:
    """Render a literal for inclusion in SQL text.
    """
    if value is None:
        return 'NULL'
    if isinstance(value, Expression):
        return value.expression
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, int | float | decimal.Decimal):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


def extract_simple_type(db_type: str | None, size: int | None = None,
                        scale: int | None = None) -> str:
    """Map a native type name to an abstract type.

    Generic mapping shared across backends; matching is by substring where the
    native family has several spellings (datetime2, smalldatetime, ...).
    """
    if not db_type:
        return SimpleType.STRING
    name = db_type.split('(')[0].strip().lower()

    if name == 'bit' or 'bool' in name:
        return SimpleType.BOOLEAN
    if name == 'number':
        if size == 1:
            return SimpleType.BOOLEAN
        return SimpleType.INTEGER if not scale else SimpleType.DECIMAL
    if name in {'decimal', 'numeric', 'percent'}:
        return SimpleType.DECIMAL
    if 'double' in name:
        return SimpleType.DOUBLE
    if name == 'real' or 'float' in name:
        return SimpleType.DOUBLE if size == 53 else SimpleType.FLOAT
    if 'money' in name:
        return SimpleType.MONEY
    if name == 'tinyint':
        return SimpleType.TINY_INT
    if name == 'smallint':
        return SimpleType.SMALL_INT
    if name in {'int', 'integer'}:
        return SimpleType.INTEGER
    if name == 'bigint':
        return SimpleType.BIG_INT
    if 'timestamp' in name or name == 'datetimeoffset':
        return SimpleType.TIMESTAMP
    if 'datetime' in name:
        return SimpleType.DATETIME
    if name == 'date':
        return SimpleType.DATE
    if 'time' in name:
        return SimpleType.TIME
    if 'binary' in name or 'blob' in name or name == 'image':
        return SimpleType.BINARY
    if 'text' in name or 'clob' in name:
        return SimpleType.TEXT
    if name == 'table':
        return SimpleType.TABLE
    return SimpleType.STRING


def parse_literal(abstract_type: str | None, text: str | None) -> Any:
    """Parse a default literal (already stripped of quoting) for a column type.

    Known server functions become Expression markers, the rest is typecast to the
    Python type that matches the abstract type.
    """
    if text is None:
        return None
    value = text.strip()
    if value.lower() in SERVER_FUNCTIONS:
        name = value.upper()
        return Expression(name if name == 'CURRENT_TIMESTAMP' else f'{name}()')
    if value.upper() == 'NULL':
        return None

    try:
        if abstract_type in INTEGER_TYPES:
            return int(value)
        if abstract_type in FLOAT_TYPES:
            return float(value)
        if abstract_type == SimpleType.DECIMAL:
            return decimal.Decimal(value)
        if abstract_type == SimpleType.BOOLEAN:
            return to_bool(value)
        if abstract_type == SimpleType.DATE:
            return dateutil.parser.parse(value).date()
        if abstract_type == SimpleType.TIME:
            return dateutil.parser.parse(value).time()
        if abstract_type in {SimpleType.DATETIME, SimpleType.DATETIME_TZ,
                             SimpleType.TIMESTAMP, SimpleType.TIMESTAMP_TZ}:
            return dateutil.parser.parse(value)
    except (ValueError, OverflowError, decimal.InvalidOperation) as e:
        logger.debug(f'Leaving default {value!r} as text for {abstract_type}: {e}')
    return value
