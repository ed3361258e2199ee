"""
DDL rendering for SQL Server.

Column definitions go through the translate -> validate -> build pipeline;
statement builders interpolate quoted identifiers and rendered definitions
into SQL Server's fixed statement templates.
"""
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from more_itertools import always_iterable

from mssql_schema.exceptions import ConfigurationError
from mssql_schema.model import ColumnDefinition, quote_name
from mssql_schema.translate import translate_simple_column_types
from mssql_schema.translate import validate_column_settings
from mssql_schema.types import Expression, quote_value

logger = logging.getLogger(__name__)

ColumnInfo = ColumnDefinition | Mapping[str, Any] | str


def build_column_definition(info: ColumnDefinition) -> str:
    """Render a translated, validated column definition.

    Raises
        ConfigurationError: Column is marked both primary key and unique
    """
    if info.is_primary_key and info.is_unique:
        raise ConfigurationError(
            f'Column {info.name or ""!r} cannot be both primary key and unique')

    definition = f'{info.type or ""}{info.type_extras or ""}'
    definition += ' NULL' if info.allow_null else ' NOT NULL'

    if info.default is not None:
        if isinstance(info.default, Expression):
            definition += f' DEFAULT {info.default.expression}'
        else:
            definition += f' DEFAULT {quote_value(info.default)}'

    if info.auto_increment:
        definition += ' IDENTITY'

    if info.is_primary_key:
        definition += ' PRIMARY KEY'
    elif info.is_unique:
        definition += ' UNIQUE'

    return definition


def get_column_type(info: ColumnInfo, string_max_size: int = 255) -> str:
    """Render the full column type for an abstract column description.

    A plain string is taken as an already-rendered native definition.
    """
    if isinstance(info, str):
        return info
    if not isinstance(info, ColumnDefinition):
        info = ColumnDefinition.from_dict(dict(info))
    info = translate_simple_column_types(info)
    info = validate_column_settings(info, string_max_size=string_max_size)
    return build_column_definition(info)


def add_column(table: str, column: str, info: ColumnInfo, string_max_size: int = 255) -> str:
    return f'ALTER TABLE {table} ADD {quote_name(column)} {get_column_type(info, string_max_size)};'


def alter_column(table: str, column: str, info: ColumnInfo, string_max_size: int = 255) -> str:
    return (f'ALTER TABLE {table} ALTER COLUMN {quote_name(column)} '
            f'{get_column_type(info, string_max_size)}')


def rename_table(table: str, new_name: str) -> str:
    return f"sp_rename '{table}', '{new_name}'"


def rename_column(table: str, name: str, new_name: str) -> str:
    return f"sp_rename '{table}.{name}', '{new_name}', 'COLUMN'"


def drop_columns(table: str, columns: str | Iterable[str]) -> str | None:
    """Render a DROP COLUMN statement, or None when there is nothing to drop"""
    columns = list(always_iterable(columns))
    if not columns:
        return None
    return f"ALTER TABLE {table} DROP COLUMN {', '.join(quote_name(c) for c in columns)}"


def create_table(table: str, columns: Mapping[str, ColumnInfo],
                 string_max_size: int = 255) -> str:
    """Render a CREATE TABLE statement from named column descriptions"""
    lines = [f'  {quote_name(name)} {get_column_type(info, string_max_size)}'
             for name, info in columns.items()]
    body = ',\n'.join(lines)
    sql = f'CREATE TABLE {table} (\n{body}\n)'
    logger.debug(f'Rendered table definition: {sql}')
    return sql
