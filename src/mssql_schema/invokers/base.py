"""
Base interface for routine invocation builders.

A routine invoker renders the EXEC/SELECT text for a stored procedure or
function and the plan for binding caller values to it. Concrete invokers
differ in how OUT and INOUT parameters are handled, which depends on whether
the active driver can bind output parameters. One invoker is chosen per
schema facade from the driver profile.
"""
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple

from mssql_schema.model import ParameterSchema, RoutineSchema, quote_name
from mssql_schema.types import SimpleType

# Registry of invoker name -> invoker class
_INVOKER_REGISTRY: dict[str, type['RoutineInvoker']] = {}

IN = 'IN'
OUT = 'OUT'
INOUT = 'INOUT'
OUTPUT_MODES = frozenset({OUT, INOUT})
MODES = frozenset({IN, OUT, INOUT})


def register_invoker(name: str):
    """Decorator to register an invoker class under a name.

    Usage:
        @register_invoker('bound_output')
        class BoundOutputInvoker(RoutineInvoker):
            ...
    """
    def decorator(cls: type['RoutineInvoker']) -> type['RoutineInvoker']:
        _INVOKER_REGISTRY[name] = cls
        return cls
    return decorator


class ParameterBinding(NamedTuple):
    """A single value to bind to a rendered routine statement."""
    placeholder: str
    name: str
    value: Any
    param_type: str
    db_type: str | None
    is_output: bool = False


def lookup_value(values: Mapping[str, Any], name: str) -> tuple[bool, Any]:
    """Find a caller value by parameter name, falling back to case-insensitive.

    Returns
        (present, value)
    """
    if name in values:
        return True, values[name]
    lowered = name.lower()
    for key, value in values.items():
        if key.lstrip('@').lower() == lowered:
            return True, value
    return False, None


def param_mode(param: ParameterSchema) -> str:
    return (param.param_type or IN).upper()


class RoutineInvoker(ABC):
    """Base class for routine statement and binding builders.
    """

    def __init__(self, default_schema: str = 'dbo') -> None:
        self.default_schema = default_schema

    @abstractmethod
    def build_procedure_statement(self, routine: RoutineSchema,
                                  params: Sequence[ParameterSchema],
                                  values: Mapping[str, Any]) -> str:
        """Render the EXEC statement for a stored procedure.

        Args:
            routine: Procedure metadata
            params: Parameters in declaration order
            values: Caller values keyed by parameter name

        Returns
            str: Statement text with ``:name`` placeholders
        """

    @abstractmethod
    def bind_procedure(self, params: Sequence[ParameterSchema],
                       values: Mapping[str, Any]) -> list[ParameterBinding]:
        """Plan the value bindings for a rendered procedure statement.

        Args:
            params: Parameters in declaration order
            values: Caller values keyed by parameter name

        Returns
            list: Bindings in declaration order
        """

    def _bind_in(self, param: ParameterSchema, values: Mapping[str, Any]) -> ParameterBinding:
        _, value = lookup_value(values, param.name)
        return ParameterBinding(f':{param.name}', param.name, value, IN, param.db_type)

    def qualified_function_name(self, routine: RoutineSchema) -> str:
        """Functions must always be called with a schema"""
        if routine.schema_name:
            return routine.quoted_name
        return f'{quote_name(self.default_schema)}.{routine.quoted_name}'

    def build_function_statement(self, routine: RoutineSchema,
                                 params: Sequence[ParameterSchema],
                                 values: Mapping[str, Any]) -> str:
        """Render the SELECT statement for a scalar or table-valued function.
        """
        name = self.qualified_function_name(routine)
        args = ', '.join(f':{p.name}' for p in params if param_mode(p) == IN)
        if routine.return_type == SimpleType.TABLE:
            return f"SELECT * FROM {name}({args}) AS {quote_name('output')}"
        return f"SELECT {name}({args}) AS {quote_name('output')}"

    def bind_function(self, params: Sequence[ParameterSchema],
                      values: Mapping[str, Any]) -> list[ParameterBinding]:
        """Function arguments are always bound as plain input values"""
        return [self._bind_in(p, values) for p in params if param_mode(p) == IN]
