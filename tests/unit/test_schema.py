"""
Tests for the SQL Server schema facade.
"""
import datetime

import pytest
from mssql_schema import SqlServerSchema
from mssql_schema.exceptions import DriverUnavailableError
from mssql_schema.invokers import BoundOutputInvoker, DeclareSelectInvoker
from mssql_schema.model import ColumnSchema, FunctionSchema, ParameterSchema
from mssql_schema.model import ProcedureSchema, TableSchema
from mssql_schema.options import SchemaOptions
from mssql_schema.types import Expression


def test_invoker_follows_driver_profile(sqlsrv_schema, dblib_schema):
    """The routine invoker is fixed by the probed driver"""
    assert sqlsrv_schema.profile.name == 'sqlsrv'
    assert isinstance(sqlsrv_schema.invoker, BoundOutputInvoker)
    assert dblib_schema.profile.name == 'dblib'
    assert isinstance(dblib_schema.invoker, DeclareSelectInvoker)


def test_missing_driver(fake_executor):
    with pytest.raises(DriverUnavailableError):
        SqlServerSchema(fake_executor, SchemaOptions(drivers=[]))


def test_explicit_invoker(fake_executor):
    invoker = DeclareSelectInvoker()
    schema = SqlServerSchema(fake_executor, SchemaOptions(drivers={'sqlsrv'}), invoker=invoker)
    assert schema.invoker is invoker


def test_init_session(fake_executor):
    schema = SqlServerSchema(fake_executor, SchemaOptions(
        drivers={'dblib'}, init_statements=('SET NOCOUNT ON;',)))
    schema.init_session()
    assert [sql for sql, _ in fake_executor.statements] == [
        'SET ANSI_NULLS ON;', 'SET ANSI_WARNINGS ON;',
        'SET QUOTED_IDENTIFIER ON;', 'SET NOCOUNT ON;']


def test_init_session_sqlsrv(sqlsrv_schema, fake_executor):
    sqlsrv_schema.init_session()
    assert fake_executor.statements == []


def test_naming(sqlsrv_schema):
    assert sqlsrv_schema.get_default_schema() == 'dbo'
    assert sqlsrv_schema.quote_table_name('sales.orders') == '[sales].[orders]'
    assert sqlsrv_schema.quote_column_name('order id') == '[order id]'
    assert sqlsrv_schema.compare_table_names('[dbo].[Users]', 'dbo.users')


def test_date_formats(sqlsrv_schema, dblib_schema):
    """Legacy datetime has no fractional seconds under FreeTDS"""
    assert sqlsrv_schema.get_date_format() == '%Y-%m-%d %H:%M:%S.%f'
    assert dblib_schema.get_date_format() == '%Y-%m-%d %H:%M:%S'

    column = ColumnSchema(name='created', type='datetime', db_type='datetime')
    assert dblib_schema.get_native_datetime_format(column) == '%Y-%m-%d %H:%M:%S'
    value = datetime.datetime(2024, 5, 6, 7, 8, 9, 500000)
    assert dblib_schema.typecast_to_native(value, column) == '2024-05-06 07:08:09'
    assert sqlsrv_schema.typecast_to_native(value, column) == '2024-05-06 07:08:09.500'


def test_timestamp_for_set(sqlsrv_schema):
    assert sqlsrv_schema.get_timestamp_for_set() == Expression('(SYSDATETIMEOFFSET())')


def test_discovery_delegates_to_catalog(sqlsrv_schema, fake_executor):
    fake_executor.add_rows('INFORMATION_SCHEMA.SCHEMATA', [{'schema_name': 'dbo'}])
    fake_executor.add_rows('INFORMATION_SCHEMA.TABLES', [{'TABLE_SCHEMA': 'dbo', 'TABLE_NAME': 'users'}])

    assert sqlsrv_schema.get_schemas() == ['dbo']
    assert list(sqlsrv_schema.get_table_names()) == ['users']
    assert list(sqlsrv_schema.get_view_names()) == ['users']
    assert sqlsrv_schema.get_table_constraints() == {}


def test_get_table(sqlsrv_schema, fake_executor):
    fake_executor.add_rows('INFORMATION_SCHEMA.COLUMNS', [{
        'COLUMN_NAME': 'id', 'NUMERIC_PRECISION': 10, 'NUMERIC_SCALE': 0,
        'CHARACTER_MAXIMUM_LENGTH': None, 'IS_NULLABLE': 'NO', 'IS_IDENTITY': 1,
        'DATA_TYPE': 'int', 'COLUMN_DEFAULT': None,
    }])
    table = sqlsrv_schema.get_table('sales.users')
    assert table.name == 'sales.users'
    assert table.get_column('id').type == 'integer'
    assert table.sequence_name == 'sales.users'


def test_get_routine(sqlsrv_schema, fake_executor):
    fake_executor.add_rows('INFORMATION_SCHEMA.PARAMETERS', [
        {'ORDINAL_POSITION': 1, 'PARAMETER_MODE': 'IN', 'PARAMETER_NAME': '@id',
         'DATA_TYPE': 'int', 'CHARACTER_MAXIMUM_LENGTH': None,
         'NUMERIC_PRECISION': 10, 'NUMERIC_SCALE': 0},
    ])
    fake_executor.add_rows('INFORMATION_SCHEMA.ROUTINES', [
        {'ROUTINE_SCHEMA': 'dbo', 'ROUTINE_NAME': 'touch', 'DATA_TYPE': None},
    ])
    procedures = sqlsrv_schema.get_procedure_names()
    routine = sqlsrv_schema.get_routine(procedures['touch'])

    assert [p.name for p in routine.parameters] == ['id']
    assert sqlsrv_schema.get_procedure_statement(routine) == 'EXEC [dbo].[touch] @id=:id'
    assert isinstance(sqlsrv_schema.get_function_names()['touch'], FunctionSchema)


def test_maintenance(sqlsrv_schema, fake_executor):
    table = TableSchema(schema_name='dbo', resource_name='users', primary_key='id',
                        sequence_name='dbo.users')
    sqlsrv_schema.reset_sequence(table, 10)
    sqlsrv_schema.set_integrity_check(True, 'dbo')

    assert fake_executor.statements == [("DBCC CHECKIDENT ('dbo.users', RESEED, 9)", ())]


def test_ddl(sqlsrv_schema):
    assert sqlsrv_schema.build_column_definition({'type': 'id'}) == 'int NOT NULL IDENTITY PRIMARY KEY'
    assert sqlsrv_schema.translate_column({'type': 'text'}).type_extras == '(max)'
    assert sqlsrv_schema.get_column_type({'type': 'string'}) == 'varchar(255) NOT NULL'
    assert sqlsrv_schema.add_column('[dbo].[t]', 'c', {'type': 'integer'}) == 'ALTER TABLE [dbo].[t] ADD [c] int NOT NULL;'
    assert sqlsrv_schema.alter_column('[dbo].[t]', 'c', 'bigint NULL') == 'ALTER TABLE [dbo].[t] ALTER COLUMN [c] bigint NULL'
    assert sqlsrv_schema.rename_table('dbo.t', 'u') == "sp_rename 'dbo.t', 'u'"
    assert sqlsrv_schema.rename_column('dbo.t', 'c', 'd') == "sp_rename 'dbo.t.c', 'd', 'COLUMN'"
    assert sqlsrv_schema.create_table('[dbo].[t]', {'id': {'type': 'id'}}) == (
        'CREATE TABLE [dbo].[t] (\n  [id] int NOT NULL IDENTITY PRIMARY KEY\n)')


def test_string_max_size_option(fake_executor):
    schema = SqlServerSchema(fake_executor, SchemaOptions(drivers={'sqlsrv'}, string_max_size=64))
    assert schema.get_column_type({'type': 'string', 'supports_multibyte': True}) == 'nvarchar(64) NOT NULL'


def test_drop_columns(sqlsrv_schema, fake_executor):
    assert sqlsrv_schema.drop_columns('[dbo].[t]', []) is False
    assert fake_executor.statements == []

    assert sqlsrv_schema.drop_columns('[dbo].[t]', ['a', 'b']) is True
    assert fake_executor.statements == [('ALTER TABLE [dbo].[t] DROP COLUMN [a], [b]', ())]


def test_routine_statements_per_driver(sqlsrv_schema, dblib_schema):
    params = (
        ParameterSchema(name='id', position=1, type='integer', db_type='int'),
        ParameterSchema(name='status', position=2, param_type='OUT', type='string',
                        db_type='varchar', length=10),
    )
    routine = ProcedureSchema(schema_name='dbo', resource_name='get_status', parameters=params)

    assert sqlsrv_schema.get_procedure_statement(routine) == 'EXEC [dbo].[get_status] @id=:id, @status=:status'
    assert dblib_schema.get_procedure_statement(routine) == (
        'DECLARE @status varchar(10); EXEC [dbo].[get_status] :id, @status OUTPUT; '
        'SELECT @status AS [status];')

    values = {'id': 5}
    assert [b.name for b in sqlsrv_schema.do_routine_binding(params, values)] == ['id', 'status']
    assert [b.name for b in dblib_schema.do_routine_binding(params, values)] == ['id']


def test_function_statement(dblib_schema):
    params = (ParameterSchema(name='id', position=1, type='integer', db_type='int'),)
    routine = FunctionSchema(schema_name='', resource_name='score', return_type='integer',
                             parameters=params)
    assert dblib_schema.get_function_statement(routine) == 'SELECT [dbo].[score](:id) AS [output]'
    bindings = dblib_schema.do_function_binding(params, {'id': 1})
    assert [(b.placeholder, b.value) for b in bindings] == [(':id', 1)]
