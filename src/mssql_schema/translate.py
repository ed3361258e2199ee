"""
Type translation between abstract column descriptions and SQL Server types.

Forward path: ``translate_simple_column_types`` maps an abstract type tag to a
native type, then ``validate_column_settings`` fills in the size/precision
clause for the native type family. Both return new ColumnDefinition values.

Inverse path: ``extract_type`` and ``extract_default`` turn catalog metadata
into abstract ColumnSchema attributes.
"""
import datetime
import decimal
import logging
import re
from typing import Any

from mssql_schema.config.type_mapping import TypeMappingConfig
from mssql_schema.drivers import DriverProfile
from mssql_schema.exceptions import ForbiddenWriteError, ValidationError
from mssql_schema.model import ColumnDefinition, ColumnSchema, ParameterSchema
from mssql_schema.types import Expression, SimpleType, extract_simple_type
from mssql_schema.types import is_numeric, parse_literal, to_bool

logger = logging.getLogger(__name__)

CURRENT_TIMESTAMP = Expression('CURRENT_TIMESTAMP')

# row versioning counters, exposed under a temporal-looking name
ROW_VERSION_TYPES = frozenset({'timestamp', 'rowversion'})

FIXED_LENGTH_TYPES = frozenset({'char', 'nchar', 'binary'})
MULTIBYTE_TYPES = frozenset({'nchar', 'nvarchar', 'ntext'})

INTEGER_FAMILY = frozenset({'bit', 'tinyint', 'smallint', 'int', 'bigint'})
MONEY_FAMILY = frozenset({'money', 'smallmoney'})
DECIMAL_FAMILY = frozenset({'decimal', 'numeric'})
FLOAT_FAMILY = frozenset({'real', 'float'})
FIXED_FAMILY = frozenset({'char', 'nchar', 'binary'})
VARIABLE_FAMILY = frozenset({'varchar', 'nvarchar', 'varbinary'})
TEMPORAL_FAMILY = frozenset({'time', 'datetime', 'datetime2', 'datetimeoffset'})

_NATIVE_TYPE_RE = re.compile(r'^\s*([\w ]+?)\s*(?:\((.*)\))?\s*$')


def _first_set(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def translate_simple_column_types(info: ColumnDefinition) -> ColumnDefinition:
    """Map an abstract type tag to its SQL Server type and required flags.

    Types that are not abstract tags are treated as native and pass through.
    """
    match info.type:
        case 'pk' | SimpleType.ID:
            return info.evolve(type='int', allow_null=False, auto_increment=True,
                               is_primary_key=True)
        case 'fk' | SimpleType.REF:
            return info.evolve(type='int', is_foreign_key=True)
        case SimpleType.DATETIME:
            return info.evolve(type='datetime2')
        case SimpleType.TIMESTAMP:
            return info.evolve(type='datetimeoffset')
        case SimpleType.TIMESTAMP_ON_CREATE | SimpleType.TIMESTAMP_ON_UPDATE:
            default = CURRENT_TIMESTAMP if info.default is None else info.default
            return info.evolve(type='datetimeoffset', default=default)
        case SimpleType.USER_ID | SimpleType.USER_ID_ON_CREATE | SimpleType.USER_ID_ON_UPDATE:
            return info.evolve(type='int')
        case SimpleType.BOOLEAN:
            default = info.default
            if default is not None and not isinstance(default, Expression):
                default = int(to_bool(default))
            return info.evolve(type='bit', default=default)
        case SimpleType.INTEGER:
            return info.evolve(type='int')
        case SimpleType.DOUBLE:
            return info.evolve(type='float', type_extras='(53)')
        case SimpleType.TEXT:
            return info.evolve(type='varchar', type_extras='(max)')
        case 'ntext':
            return info.evolve(type='nvarchar', type_extras='(max)')
        case 'image':
            return info.evolve(type='varbinary', type_extras='(max)')
        case SimpleType.STRING:
            if info.fixed_length:
                native = 'nchar' if info.supports_multibyte else 'char'
            elif info.supports_multibyte:
                native = 'nvarchar'
            else:
                native = 'varchar'
            return info.evolve(type=native)
        case SimpleType.BINARY:
            return info.evolve(type='binary' if info.fixed_length else 'varbinary')
    return info


def _coerce_default(default: Any, cast) -> Any:
    if default is None or isinstance(default, Expression) or not is_numeric(default):
        return default
    return cast(decimal.Decimal(str(default)))


def validate_column_settings(info: ColumnDefinition,
                             string_max_size: int = 255) -> ColumnDefinition:
    """Fill in the size/precision clause and coerce defaults per type family.
    """
    native = (info.type or '').lower()
    length = _first_set(info.length, info.size)

    if native in INTEGER_FAMILY:
        return info.evolve(default=_coerce_default(info.default, int))

    if native in MONEY_FAMILY:
        # fixed precision and scale, no clause allowed
        return info.evolve(default=_coerce_default(info.default, float))

    if native in DECIMAL_FAMILY:
        extras = info.type_extras
        if extras is None:
            precision = _first_set(info.length, info.precision)
            if precision:
                extras = f'({precision},{info.scale})' if info.scale else f'({precision})'
        return info.evolve(type_extras=extras, default=_coerce_default(info.default, float))

    if native in FLOAT_FAMILY:
        extras = info.type_extras
        if extras is None:
            precision = _first_set(info.length, info.precision)
            if precision:
                extras = f'({precision})'
        return info.evolve(type_extras=extras, default=_coerce_default(info.default, float))

    if native in FIXED_FAMILY:
        if length is not None:
            return info.evolve(type_extras=f'({length})')
        return info

    if native in VARIABLE_FAMILY:
        if length is not None:
            return info.evolve(type_extras=f'({length})')
        if info.type_extras == '(max)':
            return info
        return info.evolve(type_extras=f'({string_max_size})')

    if native in TEMPORAL_FAMILY:
        if length is not None:
            return info.evolve(type_extras=f'({length})')

    return info


def extract_fixed_length(db_type: str | None) -> bool:
    return (db_type or '').lower() in FIXED_LENGTH_TYPES


def extract_multibyte_support(db_type: str | None) -> bool:
    return (db_type or '').lower() in MULTIBYTE_TYPES


def split_native_type(db_type: str) -> tuple[str, list[str]]:
    """Split ``nvarchar(10)`` into ``('nvarchar', ['10'])``"""
    match = _NATIVE_TYPE_RE.match(db_type or '')
    if not match:
        return (db_type or '').strip().lower(), []
    base, extras = match.groups()
    args = [a.strip() for a in extras.split(',')] if extras else []
    return base.lower(), args


def extract_type(column: ColumnSchema, db_type: str) -> ColumnSchema:
    """Set the abstract type of a column from its native type.

    Applies two SQL Server corrections on top of the generic mapping: an
    unbounded varchar/nvarchar is text, and timestamp/rowversion (a binary row
    counter, not a wall-clock value) is a 64-bit integer.
    """
    base, args = split_native_type(db_type)
    changes: dict[str, Any] = {}
    if column.db_type is None:
        changes['db_type'] = base

    size, precision, scale = column.size, column.precision, column.scale
    if args and size is None and precision is None:
        if base in DECIMAL_FAMILY | FLOAT_FAMILY:
            precision = changes['precision'] = int(args[0])
            if len(args) > 1:
                scale = changes['scale'] = int(args[1])
        elif args[0].lower() != 'max' and args[0].lstrip('-').isdigit() and int(args[0]) > 0:
            size = changes['size'] = int(args[0])

    simple_type = TypeMappingConfig.get_instance().get_type_for_db_type(base)
    if simple_type is None:
        simple_type = extract_simple_type(base, _first_set(size, precision), scale)

    if 'varchar' in base and size is None:
        simple_type = SimpleType.TEXT
    if base in ROW_VERSION_TYPES:
        simple_type = SimpleType.BIG_INT

    return column.evolve(type=str(simple_type), **changes)


def extract_default(column: ColumnSchema, default_value: str | None) -> ColumnSchema:
    """Set the column default from catalog default-constraint text.

    Catalog text arrives wrapped, e.g. ``((1))``, ``('abc')``, ``(getdate())``.
    """
    if default_value is None or default_value == '(NULL)':
        default = None
    elif column.type == SimpleType.BOOLEAN:
        default = {'((1))': True, '((0))': False}.get(default_value)
    elif column.type == SimpleType.TIMESTAMP or (column.db_type or '').lower() in ROW_VERSION_TYPES:
        default = None
    else:
        stripped = default_value.replace('(', '').replace(')', '').replace("'", '')
        default = parse_literal(column.type, stripped)
    return column.evolve(default=default)


def get_native_datetime_format(field_info: str | ColumnSchema | ParameterSchema,
                               profile: DriverProfile) -> str | None:
    """strftime format expected by the backend for a temporal field.

    A legacy ``datetime`` column under the dblib driver takes no fractional
    seconds.
    """
    db_type = None
    if isinstance(field_info, str):
        simple_type = field_info
    else:
        simple_type = field_info.type
        db_type = (field_info.db_type or '').lower()

    match (simple_type or SimpleType.STRING).lower():
        case SimpleType.DATE:
            return '%Y-%m-%d'
        case SimpleType.DATETIME | SimpleType.DATETIME_TZ:
            if db_type == 'datetime':
                return profile.datetime_format
            return '%Y-%m-%d %H:%M:%S.%f'
        case SimpleType.TIME | SimpleType.TIME_TZ:
            return '%H:%M:%S.%f'
        case (SimpleType.TIMESTAMP | SimpleType.TIMESTAMP_TZ
              | SimpleType.TIMESTAMP_ON_CREATE | SimpleType.TIMESTAMP_ON_UPDATE):
            return '%Y-%m-%d %H:%M:%S.%f %z'
    return None


def typecast_to_native(value: Any, field_info: ColumnSchema | ParameterSchema,
                       profile: DriverProfile, allow_null: bool = True) -> Any:
    """Convert a client value to the form the backend accepts for a field.

    Raises
        ForbiddenWriteError: The field is a backend-maintained row version
        ValidationError: value is None and nulls are not allowed
    """
    db_type = (field_info.db_type or '').lower()
    if db_type in ROW_VERSION_TYPES:
        raise ForbiddenWriteError(f'Field type {db_type} of {field_info.name!r} not able to be set.')
    if db_type == 'uniqueidentifier' and isinstance(value, str) and value.lower() == 'null':
        return None

    if value is None:
        if allow_null:
            return None
        raise ValidationError(f'Field {field_info.name!r} does not allow null values')
    if isinstance(value, Expression):
        return value

    if field_info.type == SimpleType.BOOLEAN:
        return int(to_bool(value))

    if isinstance(value, datetime.date | datetime.time):
        fmt = get_native_datetime_format(field_info, profile)
        if fmt is None:
            return value
        formatted = value.strftime(fmt).strip()
        if db_type == 'datetime' and fmt.endswith('.%f'):
            # datetime stores milliseconds only
            formatted = formatted[:-3]
        return formatted

    return value


def get_timestamp_for_set() -> Expression:
    return Expression('(SYSDATETIMEOFFSET())')
