"""
Schema translation exception classes.
"""


class SchemaError(Exception):
    """Base class for all mssql_schema errors.
    """


class ConfigurationError(SchemaError):
    """Abstract schema description that cannot be rendered as DDL.

    Raised when a column is marked both primary key and unique.
    """


class ForbiddenWriteError(SchemaError):
    """Attempt to assign a value to a backend-maintained column.
    """


class DriverUnavailableError(SchemaError):
    """Neither SQL Server driver family is available.
    """


class ValidationError(SchemaError, ValueError):
    """Error in input validation.
    """
