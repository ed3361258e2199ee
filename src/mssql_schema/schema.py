"""
SQL Server schema facade.

Binds a statement executor, options and the driver profile (probed once) to
the catalog introspector, DDL builders, type translator and routine invoker.
This is the surface consumed by schema-management and query-execution layers.
"""
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from mssql_schema import ddl
from mssql_schema.catalog import CatalogIntrospector, ConstraintKey
from mssql_schema.drivers import DriverProfile, detect_driver_profile
from mssql_schema.drivers import session_statements
from mssql_schema.executor import Executor
from mssql_schema.invokers import ParameterBinding, RoutineInvoker
from mssql_schema.invokers import get_invoker_for_profile
from mssql_schema.model import ColumnDefinition, ColumnSchema, ParameterSchema
from mssql_schema.model import RoutineSchema, TableSchema, quote_name
from mssql_schema.options import SchemaOptions
from mssql_schema.translate import get_native_datetime_format, get_timestamp_for_set
from mssql_schema.translate import translate_simple_column_types, typecast_to_native
from mssql_schema.translate import validate_column_settings
from mssql_schema.types import Expression

logger = logging.getLogger(__name__)


class SqlServerSchema:
    """Schema translation and introspection for one SQL Server connection.

    Args:
        executor: Statement execution interface for the connection
        options: SchemaOptions; defaults when None
        invoker: Routine invoker; chosen from the driver profile when None
    """

    def __init__(self, executor: Executor, options: SchemaOptions | None = None,
                 invoker: RoutineInvoker | None = None) -> None:
        self.executor = executor
        self.options = options or SchemaOptions()
        self.profile: DriverProfile = detect_driver_profile(self.options.drivers)
        self.catalog = CatalogIntrospector(executor, self.options)
        self.invoker = invoker or get_invoker_for_profile(self.profile, self.options.default_schema)
        logger.debug(f'Using {self.profile.name} driver profile with {type(self.invoker).__name__}')

    def init_session(self) -> None:
        """Run the driver's session settings and configured init statements"""
        for statement in session_statements(self.profile, self.options.init_statements):
            self.executor.statement(statement)

    # Naming and quoting

    def get_default_schema(self) -> str:
        return self.catalog.get_default_schema()

    def quote_table_name(self, name: str) -> str:
        return '.'.join(quote_name(part) for part in name.split('.'))

    def quote_column_name(self, name: str) -> str:
        return quote_name(name)

    def compare_table_names(self, name1: str, name2: str) -> bool:
        return self.catalog.compare_table_names(name1, name2)

    def get_date_format(self) -> str:
        """Query grammar date format; dblib's native DATETIME has no fractional part"""
        return self.profile.datetime_format

    def get_native_datetime_format(self, field_info: str | ColumnSchema | ParameterSchema) -> str | None:
        return get_native_datetime_format(field_info, self.profile)

    def get_timestamp_for_set(self) -> Expression:
        return self.executor.raw(get_timestamp_for_set().expression)

    def typecast_to_native(self, value: Any, field_info: ColumnSchema | ParameterSchema,
                           allow_null: bool = True) -> Any:
        return typecast_to_native(value, field_info, self.profile, allow_null=allow_null)

    # Discovery

    def get_schemas(self) -> list[str]:
        return self.catalog.get_schemas()

    def get_table_names(self, schema: str = '') -> dict[str, TableSchema]:
        return self.catalog.get_table_names(schema)

    def get_view_names(self, schema: str = '') -> dict[str, TableSchema]:
        return self.catalog.get_view_names(schema)

    def get_table(self, table: TableSchema | str) -> TableSchema:
        return self.catalog.load_table(table)

    def get_table_constraints(self, schema: str | Iterable[str] = '') -> dict[ConstraintKey, dict[str, Any]]:
        return self.catalog.get_table_constraints(schema)

    def get_procedure_names(self, schema: str = '') -> dict[str, RoutineSchema]:
        return self.catalog.get_procedure_names(schema)

    def get_function_names(self, schema: str = '') -> dict[str, RoutineSchema]:
        return self.catalog.get_function_names(schema)

    def get_routine(self, routine: RoutineSchema) -> RoutineSchema:
        """Routine with its parameters (and return type) loaded"""
        return self.catalog.load_parameters(routine)

    def reset_sequence(self, table: TableSchema, value: int | None = None) -> None:
        self.catalog.reset_sequence(table, value)

    def set_integrity_check(self, enable: bool, schema: str = '') -> None:
        self.catalog.set_integrity_check(enable, schema)

    # DDL

    def translate_column(self, info: ColumnDefinition | Mapping[str, Any]) -> ColumnDefinition:
        """Translate and validate an abstract column description"""
        if not isinstance(info, ColumnDefinition):
            info = ColumnDefinition.from_dict(dict(info))
        info = translate_simple_column_types(info)
        return validate_column_settings(info, string_max_size=self.options.string_max_size)

    def build_column_definition(self, info: ColumnDefinition | Mapping[str, Any]) -> str:
        return ddl.build_column_definition(self.translate_column(info))

    def get_column_type(self, info: ddl.ColumnInfo) -> str:
        return ddl.get_column_type(info, self.options.string_max_size)

    def add_column(self, table: str, column: str, info: ddl.ColumnInfo) -> str:
        return ddl.add_column(table, column, info, self.options.string_max_size)

    def alter_column(self, table: str, column: str, info: ddl.ColumnInfo) -> str:
        return ddl.alter_column(table, column, info, self.options.string_max_size)

    def rename_table(self, table: str, new_name: str) -> str:
        return ddl.rename_table(table, new_name)

    def rename_column(self, table: str, name: str, new_name: str) -> str:
        return ddl.rename_column(table, name, new_name)

    def create_table(self, table: str, columns: Mapping[str, ddl.ColumnInfo]) -> str:
        return ddl.create_table(table, columns, self.options.string_max_size)

    def drop_columns(self, table: str, columns: str | Iterable[str]) -> bool:
        """Drop columns from a table; False when there is nothing to drop"""
        sql = ddl.drop_columns(table, columns)
        if sql is None:
            return False
        logger.info(f'Dropping columns: {sql}')
        return self.executor.statement(sql)

    # Routines

    def get_procedure_statement(self, routine: RoutineSchema,
                                params: Sequence[ParameterSchema] | None = None,
                                values: Mapping[str, Any] | None = None) -> str:
        params = routine.parameters if params is None else params
        return self.invoker.build_procedure_statement(routine, params, values or {})

    def do_routine_binding(self, params: Sequence[ParameterSchema],
                           values: Mapping[str, Any] | None = None) -> list[ParameterBinding]:
        return self.invoker.bind_procedure(params, values or {})

    def get_function_statement(self, routine: RoutineSchema,
                               params: Sequence[ParameterSchema] | None = None,
                               values: Mapping[str, Any] | None = None) -> str:
        params = routine.parameters if params is None else params
        return self.invoker.build_function_statement(routine, params, values or {})

    def do_function_binding(self, params: Sequence[ParameterSchema],
                            values: Mapping[str, Any] | None = None) -> list[ParameterBinding]:
        return self.invoker.bind_function(params, values or {})
