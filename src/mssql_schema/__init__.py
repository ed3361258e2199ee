"""
SQL Server schema translation: abstract column/table/routine model to native
DDL, catalog introspection and routine invocation for the sqlsrv and dblib
driver families.
"""
__version__ = '0.1.0'

from mssql_schema.catalog import CatalogIntrospector, ConstraintKey
from mssql_schema.drivers import DriverProfile, detect_driver_profile, probe_drivers
from mssql_schema.exceptions import ConfigurationError, DriverUnavailableError
from mssql_schema.exceptions import ForbiddenWriteError, SchemaError, ValidationError
from mssql_schema.executor import DbapiExecutor, Executor
from mssql_schema.invokers import BoundOutputInvoker, DeclareSelectInvoker
from mssql_schema.invokers import ParameterBinding, RoutineInvoker
from mssql_schema.model import ColumnDefinition, ColumnSchema, DbFunction
from mssql_schema.model import FunctionSchema, ParameterSchema, ProcedureSchema
from mssql_schema.model import RoutineSchema, TableSchema
from mssql_schema.options import SchemaOptions
from mssql_schema.schema import SqlServerSchema
from mssql_schema.types import Expression, SimpleType

__all__ = [
    'SqlServerSchema',
    'SchemaOptions',
    'CatalogIntrospector',
    'ConstraintKey',
    'DriverProfile',
    'detect_driver_profile',
    'probe_drivers',
    'Executor',
    'DbapiExecutor',
    'RoutineInvoker',
    'BoundOutputInvoker',
    'DeclareSelectInvoker',
    'ParameterBinding',
    'ColumnDefinition',
    'ColumnSchema',
    'DbFunction',
    'TableSchema',
    'ParameterSchema',
    'RoutineSchema',
    'ProcedureSchema',
    'FunctionSchema',
    'Expression',
    'SimpleType',
    'SchemaError',
    'ConfigurationError',
    'ForbiddenWriteError',
    'DriverUnavailableError',
    'ValidationError',
]
