"""
Driver capability probing for SQL Server.

Two low-level driver families reach SQL Server:

- ``sqlsrv``: Microsoft's ODBC drivers ("ODBC Driver 18 for SQL Server", ...),
  which can bind OUT/INOUT routine parameters.
- ``dblib``: FreeTDS, which cannot bind output parameters and whose native
  DATETIME lacks fractional-second padding.

The probe runs once per schema facade and picks the routine invoker and the
date format quirks.
"""
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from mssql_schema.exceptions import DriverUnavailableError

logger = logging.getLogger(__name__)

SQLSRV = 'sqlsrv'
DBLIB = 'dblib'

DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S.%f'
LEGACY_DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'


@dataclass(frozen=True)
class DriverProfile:
    """Capabilities of the active driver family."""
    name: str
    supports_output_binding: bool

    @property
    def is_legacy(self) -> bool:
        return not self.supports_output_binding

    @property
    def datetime_format(self) -> str:
        """Format for values bound to legacy ``datetime`` columns."""
        return LEGACY_DATETIME_FORMAT if self.is_legacy else DATETIME_FORMAT


def classify_odbc_driver(driver_name: str) -> str | None:
    """Map an ODBC driver name to a driver family name."""
    lowered = driver_name.lower()
    if 'freetds' in lowered:
        return DBLIB
    if 'sql server' in lowered:
        return SQLSRV
    return None


def probe_drivers() -> set[str]:
    """Return the set of driver family names available on this host.
    """
    import pyodbc

    names = set()
    for driver in pyodbc.drivers():
        family = classify_odbc_driver(driver)
        if family:
            names.add(family)
    logger.debug(f'Available SQL Server driver families: {sorted(names)}')
    return names


def detect_driver_profile(drivers: Iterable[str] | None = None) -> DriverProfile:
    """Select the driver profile from the available driver names.

    Args:
        drivers: Driver family names; probed with ``probe_drivers`` when None

    Returns
        DriverProfile for ``sqlsrv`` when present, otherwise ``dblib``

    Raises
        DriverUnavailableError: Neither driver family is available
    """
    available = set(probe_drivers() if drivers is None else drivers)
    if SQLSRV in available:
        return DriverProfile(SQLSRV, supports_output_binding=True)
    if DBLIB in available:
        return DriverProfile(DBLIB, supports_output_binding=False)
    raise DriverUnavailableError(
        f'No acceptable driver for SQL Server found (available: {sorted(available)})')


def session_statements(profile: DriverProfile, extra: Iterable[str] = ()) -> list[str]:
    """Statements to run when a session opens.

    Only the dblib family gets the ANSI_NULLS, ANSI_WARNINGS and
    QUOTED_IDENTIFIER statements. Microsoft's ODBC drivers already switch
    these settings on at connect time, so sqlsrv sessions get only ``extra``.
    """
    statements = []
    if profile.is_legacy:
        statements += ['SET ANSI_NULLS ON;', 'SET ANSI_WARNINGS ON;',
                       'SET QUOTED_IDENTIFIER ON;']
    statements.extend(extra)
    return statements
