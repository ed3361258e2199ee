"""
Routine invoker for drivers that can bind output parameters (sqlsrv family).
"""
import logging

from mssql_schema.invokers.base import MODES, OUTPUT_MODES, ParameterBinding
from mssql_schema.invokers.base import RoutineInvoker, lookup_value, param_mode
from mssql_schema.invokers.base import register_invoker

logger = logging.getLogger(__name__)


@register_invoker('bound_output')
class BoundOutputInvoker(RoutineInvoker):
    """Every parameter is passed as ``@name=:name`` and bound directly"""

    def build_procedure_statement(self, routine, params, values):
        param_str = ', '.join(f'@{p.name}=:{p.name}' for p in params
                              if param_mode(p) in MODES)
        sql = f'EXEC {routine.quoted_name} {param_str}'.rstrip()
        logger.debug(f'Procedure statement for {routine.name}: {sql}')
        return sql

    def bind_procedure(self, params, values):
        bindings = []
        for param in params:
            mode = param_mode(param)
            if mode not in MODES:
                continue
            _, value = lookup_value(values, param.name)
            bindings.append(ParameterBinding(
                f':{param.name}', param.name, value, mode, param.db_type,
                is_output=mode in OUTPUT_MODES))
        return bindings
