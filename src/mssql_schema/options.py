from collections.abc import Iterable
from dataclasses import dataclass

from mssql_schema.exceptions import ValidationError

__all__ = ['SchemaOptions']


@dataclass
class SchemaOptions:
    """Options

    - default_schema: schema assumed for unqualified names (default: dbo)
    - string_max_size: length used for varchar/nvarchar/varbinary columns
      declared without one (default: 255)
    - drivers: explicit driver family names (``sqlsrv``, ``dblib``); the host
      is probed when None
    - init_statements: extra statements run by ``init_session``

    Base table cache options:
    - base_table_cache_ttl: seconds a schema's base table list is kept (default: 600)
    - base_table_cache_size: number of schemas kept (default: 50)
    """
    default_schema: str = 'dbo'
    string_max_size: int = 255
    drivers: Iterable[str] | None = None
    init_statements: tuple[str, ...] = ()
    base_table_cache_ttl: int = 600
    base_table_cache_size: int = 50

    def __post_init__(self):
        if not self.default_schema:
            raise ValidationError('field default_schema cannot be empty')
        for field in ('string_max_size', 'base_table_cache_ttl', 'base_table_cache_size'):
            if int(getattr(self, field)) <= 0:
                raise ValidationError(f'field {field} must be positive')
        if isinstance(self.init_statements, str):
            self.init_statements = (self.init_statements,)
        if self.drivers is not None:
            self.drivers = frozenset(self.drivers)
