"""
Routine invoker for drivers without output-parameter binding (dblib family).

OUT and INOUT parameters are declared as T-SQL variables before the EXEC,
passed with OUTPUT, and selected back afterwards so their values arrive as
ordinary result rows.
"""
import logging

from mssql_schema.invokers.base import IN, INOUT, OUTPUT_MODES, RoutineInvoker
from mssql_schema.invokers.base import lookup_value, param_mode, register_invoker
from mssql_schema.model import ParameterSchema, quote_name
from mssql_schema.types import INTEGER_TYPES, quote_value

logger = logging.getLogger(__name__)


def declare_type(param: ParameterSchema) -> str:
    """Native type for a DECLARE, with the declared length or precision"""
    db_type = param.db_type or 'sql_variant'
    if db_type.lower() in {'decimal', 'numeric'} and param.precision:
        db_type += f'({param.precision},{param.scale or 0})'
    elif param.type not in INTEGER_TYPES and param.length:
        length = 'max' if param.length == -1 else param.length
        db_type += f'({length})'
    return db_type


@register_invoker('declare_select')
class DeclareSelectInvoker(RoutineInvoker):
    """DECLARE / EXEC ... OUTPUT / SELECT-back invocation"""

    def build_procedure_statement(self, routine, params, values):
        param_strs = []
        prefix = []
        postfix = []
        for param in params:
            mode = param_mode(param)
            if mode == IN:
                param_strs.append(f':{param.name}')
            elif mode in OUTPUT_MODES:
                var = f'@{param.name}'
                param_strs.append(f'{var} OUTPUT')
                prefix.append(f'DECLARE {var} {declare_type(param)};')
                if mode == INOUT:
                    # the server reports some OUT-only parameters as INOUT
                    present, value = lookup_value(values, param.name)
                    if present:
                        prefix.append(f'SET {var} = {quote_value(value)};')
                postfix.append(f'SELECT {var} AS {quote_name(param.name)};')

        exec_str = f'EXEC {routine.quoted_name}'
        if param_strs:
            exec_str += ' ' + ', '.join(param_strs)
        sql = ' '.join([*prefix, exec_str + ';', *postfix])
        logger.debug(f'Procedure statement for {routine.name}: {sql}')
        return sql

    def bind_procedure(self, params, values):
        return [self._bind_in(p, values) for p in params if param_mode(p) == IN]
