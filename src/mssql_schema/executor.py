"""
Statement execution interface consumed by the catalog introspector.

Connection establishment lives outside this package; callers hand in any
object satisfying ``Executor``. ``DbapiExecutor`` adapts a DB-API 2 connection
(pyodbc in production) using qmark placeholders.
"""
import logging
from collections.abc import Sequence
from contextlib import contextmanager
from typing import Any, Protocol, runtime_checkable

from mssql_schema.types import Expression

logger = logging.getLogger(__name__)


@runtime_checkable
class Executor(Protocol):
    """Minimal statement execution interface."""

    def select(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run a query and return rows as dicts"""

    def statement(self, sql: str, params: Sequence[Any] = ()) -> bool:
        """Run a statement that returns no rows"""

    def raw(self, expression: str) -> Expression:
        """Wrap a SQL expression so it is rendered verbatim"""


class DbapiExecutor:
    """Executor over a DB-API 2 connection.
    """

    def __init__(self, connection: Any) -> None:
        self.connection = connection

    @contextmanager
    def _cursor(self, sql: str, params: Sequence[Any] | None = None):
        """Context manager for cursor lifecycle.

        Handles cursor creation, SQL execution, and cleanup.
        """
        cursor = self.connection.cursor()
        try:
            logger.debug(f'Executing: {sql.strip()} {tuple(params or ())}')
            cursor.execute(sql, tuple(params or ()))
            yield cursor
        finally:
            cursor.close()

    def select(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        with self._cursor(sql, params) as cursor:
            if cursor.description is None:
                return []
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def statement(self, sql: str, params: Sequence[Any] = ()) -> bool:
        with self._cursor(sql, params):
            return True

    def raw(self, expression: str) -> Expression:
        return Expression(expression)
