"""Database access layer: drivers, connection leases, dialects, row decoding."""

from .connection import lease_connection
from .dialect import Dialect, dialect_for_driver, translate
from .driver import Driver, Psycopg2Driver, SQLiteDriver, open_driver
from .rows import BINARY, END_OF_RESULTS, TEXT, iter_rows, next_row, open_cursor

__all__ = [
    "lease_connection",
    "Dialect",
    "dialect_for_driver",
    "translate",
    "Driver",
    "Psycopg2Driver",
    "SQLiteDriver",
    "open_driver",
    "BINARY",
    "END_OF_RESULTS",
    "TEXT",
    "iter_rows",
    "next_row",
    "open_cursor",
]
