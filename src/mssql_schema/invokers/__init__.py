"""
Routine invoker factory.
"""
from mssql_schema.drivers import DriverProfile
from mssql_schema.invokers.base import _INVOKER_REGISTRY
from mssql_schema.invokers.base import ParameterBinding as ParameterBinding
from mssql_schema.invokers.base import RoutineInvoker as RoutineInvoker
from mssql_schema.invokers.base import register_invoker as register_invoker
from mssql_schema.invokers.bound_output import BoundOutputInvoker as BoundOutputInvoker
from mssql_schema.invokers.declare_select import DeclareSelectInvoker as DeclareSelectInvoker


def _validate_invoker(name: str) -> None:
    """Raise ValueError if invoker name is not registered."""
    if name not in _INVOKER_REGISTRY:
        available = list(_INVOKER_REGISTRY.keys())
        raise ValueError(f'Unsupported invoker: {name}. Available: {available}')


def get_invoker(name: str, default_schema: str = 'dbo') -> RoutineInvoker:
    """Get invoker instance by registered name."""
    _validate_invoker(name)
    return _INVOKER_REGISTRY[name](default_schema=default_schema)


def get_invoker_for_profile(profile: DriverProfile, default_schema: str = 'dbo') -> RoutineInvoker:
    """Pick the invoker matching the driver's output-binding capability."""
    name = 'bound_output' if profile.supports_output_binding else 'declare_select'
    return get_invoker(name, default_schema)


def get_available_invokers() -> list[str]:
    """Return list of registered invoker names."""
    return list(_INVOKER_REGISTRY.keys())
