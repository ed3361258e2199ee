"""
SQL Server catalog introspection.

Reads INFORMATION_SCHEMA views and sys catalog views into the abstract schema
model. It handles SQL Server's catalog specifics such as:
- Schema deny-list for built-in and fixed database-role schemas
- Identity columns via sys.identity_columns
- Read-time expressions for types the drivers cannot consume directly
- Folding one-row-per-column constraint results into per-constraint records
- DBCC CHECKIDENT for identity reseeding

Names follow one rule throughout: objects in the default schema are named by
their bare name, objects elsewhere by ``schema.name``. Mappings are keyed by
the lower-cased form of that name.
"""
import logging
from collections.abc import Iterable
from typing import Any, NamedTuple

from more_itertools import always_iterable, first

from mssql_schema.cache import cacheable_schema
from mssql_schema.executor import Executor
from mssql_schema.model import ColumnSchema, DbFunction, FunctionSchema
from mssql_schema.model import ParameterSchema, ProcedureSchema, RoutineSchema
from mssql_schema.model import TableSchema, quote_name, unquote_name
from mssql_schema.options import SchemaOptions
from mssql_schema.translate import extract_default, extract_fixed_length
from mssql_schema.translate import extract_multibyte_support, extract_type
from mssql_schema.types import extract_simple_type, to_bool

logger = logging.getLogger(__name__)

DENIED_SCHEMAS = (
    'INFORMATION_SCHEMA', 'sys', 'guest', 'db_owner', 'db_accessadmin',
    'db_securityadmin', 'db_ddladmin', 'db_backupoperator', 'db_datareader',
    'db_datawriter', 'db_denydatareader', 'db_denydatawriter',
)

PROCEDURE = 'PROCEDURE'
FUNCTION = 'FUNCTION'


class ConstraintKey(NamedTuple):
    """Identity of a folded constraint record (lower-cased parts)."""
    schema: str
    table: str
    constraint: str


def _lower_keys(row: dict[str, Any]) -> dict[str, Any]:
    return {k.lower(): v for k, v in row.items()}


def _int_or_none(value: Any) -> int | None:
    return None if value is None else int(value)


def read_time_functions(db_type: str, quoted_name: str) -> tuple[DbFunction, ...]:
    """Read-time expressions for types whose wire form is not directly consumable"""
    match (db_type or '').lower():
        case 'image':
            function = f'(CONVERT(varbinary(max), {quoted_name}))'
        case 'timestamp' | 'rowversion':
            function = f'CAST({quoted_name} AS BIGINT)'
        case 'geometry' | 'geography' | 'hierarchyid':
            function = f'({quoted_name}.ToString())'
        case 'uniqueidentifier':
            function = f'(CONVERT(varchar(255), {quoted_name}))'
        case _:
            return ()
    return (DbFunction(function),)


class CatalogIntrospector:
    """Discovers schemas, tables, views, columns, constraints and routines.
    """

    def __init__(self, executor: Executor, options: SchemaOptions | None = None) -> None:
        self.executor = executor
        self.options = options or SchemaOptions()

    def get_default_schema(self) -> str:
        return self.options.default_schema

    def _is_default_schema(self, schema: str) -> bool:
        return not schema or schema.lower() == self.get_default_schema().lower()

    def display_name(self, schema: str, resource: str) -> str:
        """Bare name in the default schema, ``schema.name`` elsewhere"""
        return resource if self._is_default_schema(schema) else f'{schema}.{resource}'

    def parse_table_name(self, name: str) -> tuple[str, str]:
        """Split a possibly quoted, possibly qualified name into (schema, name)"""
        parts = unquote_name(name).rsplit('.', 1)
        if len(parts) == 2:
            return parts[0], parts[1]
        return self.get_default_schema(), parts[0]

    def compare_table_names(self, name1: str, name2: str) -> bool:
        """Whether two (quoted or unquoted) table names refer to the same table"""
        return unquote_name(name1).lower() == unquote_name(name2).lower()

    def get_schemas(self) -> list[str]:
        placeholders = ', '.join('?' for _ in DENIED_SCHEMAS)
        sql = f"""
SELECT schema_name FROM INFORMATION_SCHEMA.SCHEMATA
WHERE schema_name NOT IN ({placeholders})
ORDER BY schema_name
"""
        rows = self.executor.select(sql, DENIED_SCHEMAS)
        return [_lower_keys(row)['schema_name'] for row in rows]

    def _get_tables(self, table_type: str, schema: str, is_view: bool) -> dict[str, TableSchema]:
        sql = """
SELECT TABLE_SCHEMA, TABLE_NAME FROM INFORMATION_SCHEMA.TABLES
WHERE TABLE_TYPE = ?
"""
        params = [table_type]
        if schema:
            sql += 'AND TABLE_SCHEMA = ?\n'
            params.append(schema)
        sql += 'ORDER BY TABLE_SCHEMA, TABLE_NAME\n'

        names = {}
        for row in self.executor.select(sql, params):
            row = _lower_keys(row)
            schema_name = row.get('table_schema') or ''
            resource_name = row.get('table_name') or ''
            name = self.display_name(schema_name, resource_name)
            names[name.lower()] = TableSchema(
                schema_name=schema_name,
                resource_name=resource_name,
                name=name,
                is_view=is_view)
        return names

    def get_table_names(self, schema: str = '') -> dict[str, TableSchema]:
        """Base tables, keyed by lower-cased display name"""
        return self._get_tables('BASE TABLE', schema, is_view=False)

    def get_view_names(self, schema: str = '') -> dict[str, TableSchema]:
        """Views, keyed by lower-cased display name"""
        return self._get_tables('VIEW', schema, is_view=True)

    def build_column(self, row: dict[str, Any]) -> ColumnSchema:
        """Create a ColumnSchema from an INFORMATION_SCHEMA.COLUMNS row.
        """
        row = _lower_keys(row)
        db_type = row['data_type']
        precision = int(row.get('numeric_precision') or 0)
        scale = int(row.get('numeric_scale') or 0)
        if precision > 0:
            if scale <= 0:
                size, precision, scale = precision, None, None
            else:
                size = None
        else:
            precision = scale = None
            size = int(row.get('character_maximum_length') or 0)
            if size <= 0:
                size = None

        column = ColumnSchema(
            name=row['column_name'],
            db_type=db_type,
            size=size,
            precision=precision,
            scale=scale,
            allow_null=to_bool(row.get('is_nullable')),
            auto_increment=bool(row.get('is_identity')),
            fixed_length=extract_fixed_length(db_type),
            supports_multibyte=extract_multibyte_support(db_type))
        column = extract_type(column, db_type)
        if row.get('column_default') is not None:
            column = extract_default(column, row['column_default'])
        return column.evolve(db_function=read_time_functions(db_type, column.quoted_name))

    def load_table_columns(self, table: TableSchema) -> TableSchema:
        """Read column metadata in ordinal order"""
        sql = """
SELECT col.column_name, col.numeric_precision, col.numeric_scale,
       col.character_maximum_length, col.is_nullable, idcol.is_identity,
       col.data_type, col.column_default
FROM INFORMATION_SCHEMA.COLUMNS AS col
LEFT JOIN sys.identity_columns AS idcol
    ON idcol.object_id = OBJECT_ID(?) AND idcol.name = col.column_name
WHERE col.table_schema = ? AND col.table_name = ?
ORDER BY col.ordinal_position
"""
        rows = self.executor.select(sql, (table.quoted_name, table.schema_name, table.resource_name))
        for row in rows:
            column = self.build_column(row)
            table = table.add_column(column)
            if column.auto_increment and table.sequence_name is None:
                table = table.evolve(sequence_name=table.internal_name)
        logger.debug(f'Loaded {len(table.columns)} columns for {table.internal_name}')
        return table

    def load_table_indexes(self, table: TableSchema) -> TableSchema:
        """Join primary key, unique and index flags onto columns by name.

        A column is flagged unique only when it alone makes up a unique index.
        """
        sql = """
SELECT i.index_id, c.name AS column_name, i.is_primary_key, i.is_unique
FROM sys.indexes i
JOIN sys.index_columns ic ON i.object_id = ic.object_id AND i.index_id = ic.index_id
JOIN sys.columns c ON ic.object_id = c.object_id AND ic.column_id = c.column_id
WHERE i.object_id = OBJECT_ID(?) AND ic.is_included_column = 0
ORDER BY i.index_id, ic.key_ordinal
"""
        rows = [_lower_keys(r) for r in self.executor.select(sql, (table.quoted_name,))]
        index_sizes: dict[Any, int] = {}
        for row in rows:
            index_sizes[row['index_id']] = index_sizes.get(row['index_id'], 0) + 1

        primary_key = []
        for row in rows:
            column = table.get_column(row['column_name'])
            if column is None:
                continue
            is_pk = bool(row['is_primary_key'])
            is_unique = bool(row['is_unique']) and not is_pk and index_sizes[row['index_id']] == 1
            if is_pk:
                primary_key.append(column.name)
            table = table.add_column(column.evolve(
                is_index=True,
                is_primary_key=column.is_primary_key or is_pk,
                is_unique=column.is_unique or is_unique))

        if primary_key:
            table = table.evolve(primary_key=primary_key[0] if len(primary_key) == 1 else primary_key)
        return table

    def load_table(self, table: TableSchema | str) -> TableSchema:
        """Load a table's columns, index flags and foreign keys"""
        if isinstance(table, str):
            schema, resource = self.parse_table_name(table)
            table = TableSchema(schema_name=schema, resource_name=resource,
                                name=self.display_name(schema, resource))
        table = self.load_table_columns(table)
        table = self.load_table_indexes(table)

        constraints = self.get_table_constraints(table.schema_name)
        for key, record in constraints.items():
            if (key.table != table.resource_name.lower()
                    or record.get('constraint_type') != 'FOREIGN KEY'):
                continue
            # ColumnSchema holds one ref_field, so composite keys stay in the constraint records
            if len(record['column_name']) != 1:
                logger.debug(f'Skipping composite foreign key {key.constraint} on '
                             f'{table.internal_name}: {record["column_name"]}')
                continue
            column = table.get_column(record['column_name'][0])
            if column is None:
                continue
            ref_table = self.display_name(record.get('referenced_table_schema') or '',
                                          record.get('referenced_table_name') or '')
            ref_field = first(record['referenced_column_name'], None)
            table = table.add_column(column.evolve(
                is_foreign_key=True, ref_table=ref_table, ref_field=ref_field))
        return table

    def get_table_constraints(self, schema: str | Iterable[str] = '') -> dict[ConstraintKey, dict[str, Any]]:
        """Constraints for one or more schemas, one record per constraint.

        The catalog returns one row per constrained column; rows sharing
        (schema, table, constraint) are folded so ``column_name`` and
        ``referenced_column_name`` become lists in key order.
        """
        schemas = [s for s in always_iterable(schema) if s] or [self.get_default_schema()]
        placeholders = ', '.join('?' for _ in schemas)
        sql = f"""
SELECT tc.constraint_type, tc.constraint_schema, tc.constraint_name,
       tc.table_schema, tc.table_name, kcu.column_name,
       kcu2.table_schema AS referenced_table_schema,
       kcu2.table_name AS referenced_table_name,
       kcu2.column_name AS referenced_column_name,
       rc.update_rule, rc.delete_rule
FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu
    ON tc.constraint_schema = kcu.constraint_schema
    AND tc.constraint_name = kcu.constraint_name
    AND tc.table_name = kcu.table_name
LEFT JOIN INFORMATION_SCHEMA.REFERENTIAL_CONSTRAINTS rc
    ON tc.constraint_schema = rc.constraint_schema
    AND tc.constraint_name = rc.constraint_name
LEFT JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu2
    ON rc.unique_constraint_schema = kcu2.constraint_schema
    AND rc.unique_constraint_name = kcu2.constraint_name
    AND kcu2.ordinal_position = kcu.ordinal_position
WHERE tc.constraint_schema IN ({placeholders})
ORDER BY tc.table_schema, tc.table_name, tc.constraint_name, kcu.ordinal_position
"""
        return fold_constraint_rows(self.executor.select(sql, schemas))

    def get_routine_names(self, routine_type: str, schema: str = '') -> dict[str, RoutineSchema]:
        """Procedures or functions, keyed by lower-cased display name"""
        routine_type = routine_type.upper()
        sql = """
SELECT ROUTINE_SCHEMA, ROUTINE_NAME, DATA_TYPE FROM INFORMATION_SCHEMA.ROUTINES
WHERE ROUTINE_TYPE = ?
"""
        params = [routine_type]
        if schema:
            sql += 'AND ROUTINE_SCHEMA = ?\n'
            params.append(schema)
        sql += 'ORDER BY ROUTINE_SCHEMA, ROUTINE_NAME\n'

        routine_cls = ProcedureSchema if routine_type == PROCEDURE else FunctionSchema
        names = {}
        for row in self.executor.select(sql, params):
            row = _lower_keys(row)
            schema_name = row.get('routine_schema') or schema
            resource_name = row.get('routine_name') or ''
            return_type = row.get('data_type')
            if return_type and return_type.lower() != 'void':
                return_type = str(extract_simple_type(return_type))
            else:
                return_type = None
            name = self.display_name(schema_name, resource_name)
            names[name.lower()] = routine_cls(
                schema_name=schema_name,
                resource_name=resource_name,
                name=name,
                return_type=return_type)
        return names

    def get_procedure_names(self, schema: str = '') -> dict[str, RoutineSchema]:
        return self.get_routine_names(PROCEDURE, schema)

    def get_function_names(self, schema: str = '') -> dict[str, RoutineSchema]:
        return self.get_routine_names(FUNCTION, schema)

    def load_parameters(self, routine: RoutineSchema) -> RoutineSchema:
        """Read a routine's parameters in ordinal order.

        Ordinal position 0 describes a function's return type, not a parameter.
        """
        sql = """
SELECT p.ORDINAL_POSITION, p.PARAMETER_MODE, p.PARAMETER_NAME, p.DATA_TYPE,
       p.CHARACTER_MAXIMUM_LENGTH, p.NUMERIC_PRECISION, p.NUMERIC_SCALE
FROM INFORMATION_SCHEMA.PARAMETERS AS p
JOIN INFORMATION_SCHEMA.ROUTINES AS r
    ON r.SPECIFIC_NAME = p.SPECIFIC_NAME AND r.SPECIFIC_SCHEMA = p.SPECIFIC_SCHEMA
WHERE r.ROUTINE_NAME = ? AND r.ROUTINE_SCHEMA = ?
ORDER BY p.ORDINAL_POSITION
"""
        schema = routine.schema_name or self.get_default_schema()
        rows = self.executor.select(sql, (routine.resource_name, schema))
        for row in rows:
            row = _lower_keys(row)
            position = int(row.get('ordinal_position') or 0)
            db_type = row.get('data_type')
            simple_type = str(extract_simple_type(db_type))
            if position == 0:
                routine = routine.evolve(return_type=simple_type)
                continue
            routine = routine.add_parameter(ParameterSchema(
                name=(row.get('parameter_name') or '').lstrip('@'),
                position=position,
                param_type=(row.get('parameter_mode') or 'IN').upper(),
                type=simple_type,
                db_type=db_type,
                length=_int_or_none(row.get('character_maximum_length')),
                precision=_int_or_none(row.get('numeric_precision')),
                scale=_int_or_none(row.get('numeric_scale'))))
        return routine

    def reset_sequence(self, table: TableSchema, value: int | None = None) -> None:
        """Reseed a table's identity.

        The next inserted row gets ``value``, or the current max primary key
        plus one when no value is given. No-op for tables without an identity.
        """
        if table.sequence_name is None:
            return
        if value is not None:
            seed = int(value) - 1
        else:
            primary_key = first(always_iterable(table.primary_key), None)
            if primary_key is None:
                primary_key = next(c.name for c in table.columns.values() if c.auto_increment)
            sql = f'SELECT MAX({quote_name(primary_key)}) AS max_id FROM {table.quoted_name}'
            rows = self.executor.select(sql)
            seed = int(first(rows[0].values(), None) or 0) if rows else 0

        name = unquote_name(table.quoted_name)
        self.executor.statement(f"DBCC CHECKIDENT ('{name}', RESEED, {seed})")
        logger.info(f'Reset identity seed for {name} to {seed}')

    @cacheable_schema('base_tables')
    def get_base_table_names(self, schema: str = '') -> list[str]:
        """Quoted names of a schema's base tables"""
        return [t.quoted_name for t in self.get_table_names(schema).values()]

    def set_integrity_check(self, enable: bool, schema: str = '') -> None:
        """Enable or disable constraint checking on every base table of a schema"""
        action = 'WITH CHECK CHECK CONSTRAINT ALL' if enable else 'NOCHECK CONSTRAINT ALL'
        tables = self.get_base_table_names(schema)
        for quoted_name in tables:
            self.executor.statement(f'ALTER TABLE {quoted_name} {action}')
        logger.info(f'Set integrity check {"on" if enable else "off"} for {len(tables)} tables')


def fold_constraint_rows(rows: Iterable[dict[str, Any]]) -> dict[ConstraintKey, dict[str, Any]]:
    """Fold one-row-per-column constraint rows into one record per constraint.
    """
    constraints: dict[ConstraintKey, dict[str, Any]] = {}
    for row in rows:
        row = _lower_keys(row)
        key = ConstraintKey(row['table_schema'].lower(), row['table_name'].lower(),
                            row['constraint_name'].lower())
        column_name = row.get('column_name')
        ref_column_name = row.get('referenced_column_name')
        record = constraints.get(key)
        if record is None:
            record = dict(row)
            record['column_name'] = []
            record['referenced_column_name'] = []
            constraints[key] = record
        if column_name is not None:
            record['column_name'].append(column_name)
        if ref_column_name is not None:
            record['referenced_column_name'].append(ref_column_name)
    return constraints
