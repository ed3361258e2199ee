"""
Abstract schema model shared by every backend adapter.

All model classes are frozen dataclasses. Passes over the model (translate,
validate, introspect) return new instances via ``dataclasses.replace`` so a
failure midway never leaves a half-updated value behind.
"""
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, ClassVar, NamedTuple, Self

from mssql_schema.types import Expression, to_bool

logger = logging.getLogger(__name__)

SELECT_USE = 'SELECT'


def quote_name(name: str) -> str:
    """Quote an identifier with SQL Server brackets"""
    return f"[{name.replace(']', ']]')}]"


def unquote_name(name: str) -> str:
    """Strip bracket quoting from an identifier (possibly schema-qualified)"""
    return name.replace('[', '').replace(']', '')


class DbFunction(NamedTuple):
    """Backend-side expression applied to a column at read time.
    """
    function: str
    uses: tuple[str, ...] = (SELECT_USE,)
    function_type: str = 'database'


_FLAG_KEYS = frozenset({
    'allow_null', 'auto_increment', 'is_primary_key', 'is_unique',
    'is_foreign_key', 'fixed_length', 'supports_multibyte',
})


@dataclass(frozen=True)
class ColumnDefinition:
    """Property bag describing a column to be rendered as DDL.

    Built by callers (usually from a dict) and passed through the translate ->
    validate -> build pipeline in ``mssql_schema.translate`` and
    ``mssql_schema.ddl``.
    """
    type: str | None = None
    name: str | None = None
    type_extras: str | None = None
    allow_null: bool = False
    default: Any = None
    auto_increment: bool = False
    is_primary_key: bool = False
    is_unique: bool = False
    is_foreign_key: bool = False
    fixed_length: bool = False
    supports_multibyte: bool = False
    length: int | None = None
    size: int | None = None
    precision: int | None = None
    scale: int | None = None

    @classmethod
    def from_dict(cls, info: dict[str, Any]) -> Self:
        """Create a definition from a loosely typed property bag.

        Flags accept anything ``to_bool`` understands, ``decimals`` is an alias
        for ``scale`` and ``{'expression': ...}`` defaults become Expression markers.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in info.items():
            if key == 'decimals':
                key = 'scale'
            if key not in known:
                logger.debug(f'Ignoring unknown column property {key!r}')
                continue
            if key in _FLAG_KEYS:
                value = to_bool(value) if value is not None else False
            elif key == 'default' and isinstance(value, dict):
                expression = value.get('expression')
                value = Expression(expression) if expression is not None else None
            kwargs[key] = value
        return cls(**kwargs)

    def evolve(self, **changes: Any) -> Self:
        return replace(self, **changes)


@dataclass(frozen=True)
class ColumnSchema:
    """Metadata for a single table column.
    """
    name: str
    quoted_name: str = ''
    type: str | None = None
    db_type: str | None = None
    size: int | None = None
    precision: int | None = None
    scale: int | None = None
    allow_null: bool = True
    default: Any = None
    auto_increment: bool = False
    is_primary_key: bool = False
    is_unique: bool = False
    is_index: bool = False
    is_foreign_key: bool = False
    ref_table: str | None = None
    ref_field: str | None = None
    fixed_length: bool = False
    supports_multibyte: bool = False
    db_function: tuple[DbFunction, ...] = ()

    def __post_init__(self):
        if not self.quoted_name:
            object.__setattr__(self, 'quoted_name', quote_name(self.name))

    def evolve(self, **changes: Any) -> Self:
        return replace(self, **changes)

    def get_db_function(self, use: str = SELECT_USE) -> str | None:
        """Return the read-time expression for a use, if any"""
        for func in self.db_function:
            if use in func.uses:
                return func.function
        return None

    def select_expression(self, as_quoted_alias: bool = True) -> str:
        """Column reference for a SELECT list.

        Columns whose wire form is not directly consumable (image, rowversion,
        spatial, uniqueidentifier) render their read-time expression instead,
        aliased back to the column name.
        """
        function = self.get_db_function(SELECT_USE)
        if function is None:
            return self.quoted_name
        alias = self.quoted_name if as_quoted_alias else self.name
        return f'{function} AS {alias}'


@dataclass(frozen=True)
class TableSchema:
    """Metadata for a table or view.

    ``columns`` preserves catalog ordinal order and is keyed by lower-cased
    column name.
    """
    schema_name: str
    resource_name: str
    name: str = ''
    internal_name: str = ''
    quoted_name: str = ''
    primary_key: str | list[str] | None = None
    sequence_name: str | None = None
    is_view: bool = False
    columns: dict[str, ColumnSchema] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, 'name', self.resource_name)
        if not self.internal_name:
            object.__setattr__(self, 'internal_name',
                               f'{self.schema_name}.{self.resource_name}')
        if not self.quoted_name:
            object.__setattr__(self, 'quoted_name',
                               f'{quote_name(self.schema_name)}.{quote_name(self.resource_name)}')

    def evolve(self, **changes: Any) -> Self:
        return replace(self, **changes)

    def add_column(self, column: ColumnSchema) -> Self:
        columns = dict(self.columns)
        columns[column.name.lower()] = column
        return replace(self, columns=columns)

    def get_column(self, name: str) -> ColumnSchema | None:
        return self.columns.get(name.lower())

    def get_column_names(self) -> list[str]:
        return [c.name for c in self.columns.values()]


@dataclass(frozen=True)
class ParameterSchema:
    """Metadata for a routine parameter.
    """
    name: str
    position: int
    param_type: str = 'IN'
    type: str | None = None
    db_type: str | None = None
    length: int | None = None
    precision: int | None = None
    scale: int | None = None


@dataclass(frozen=True)
class RoutineSchema:
    """Metadata for a stored procedure or function.
    """
    routine_type: ClassVar[str] = ''

    schema_name: str
    resource_name: str
    name: str = ''
    internal_name: str = ''
    quoted_name: str = ''
    return_type: str | None = None
    parameters: tuple[ParameterSchema, ...] = ()

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, 'name', self.resource_name)
        if not self.internal_name:
            object.__setattr__(self, 'internal_name',
                               f'{self.schema_name}.{self.resource_name}' if self.schema_name
                               else self.resource_name)
        if not self.quoted_name:
            quoted = quote_name(self.resource_name)
            if self.schema_name:
                quoted = f'{quote_name(self.schema_name)}.{quoted}'
            object.__setattr__(self, 'quoted_name', quoted)

    def evolve(self, **changes: Any) -> Self:
        return replace(self, **changes)

    def add_parameter(self, parameter: ParameterSchema) -> Self:
        return replace(self, parameters=(*self.parameters, parameter))

    def get_parameter(self, name: str) -> ParameterSchema | None:
        name = name.lstrip('@').lower()
        for param in self.parameters:
            if param.name.lower() == name:
                return param
        return None


@dataclass(frozen=True)
class ProcedureSchema(RoutineSchema):
    """Stored procedure metadata"""
    routine_type: ClassVar[str] = 'PROCEDURE'


@dataclass(frozen=True)
class FunctionSchema(RoutineSchema):
    """Stored function metadata"""
    routine_type: ClassVar[str] = 'FUNCTION'
