"""Cursor scoping and typed row decoding."""

import logging
from contextlib import contextmanager
from typing import Sequence

from .driver import Driver
from ..errors import DecodeError

logger = logging.getLogger(__name__)

TEXT = "text"
BINARY = "binary"

# Returned by next_row() when the cursor is exhausted.
END_OF_RESULTS = object()


@contextmanager
def open_cursor(driver: Driver, connection: int, query: str, params: Sequence = ()):
    """Execute `query` and yield its cursor handle, released on every exit path.

    Raises QueryError if the query is rejected.
    """
    cursor = driver.query(connection, query, params)
    try:
        yield cursor
    finally:
        driver.release_cursor(cursor)


def coerce(value, kind: str):
    """Coerce one raw column value to `kind`, or raise DecodeError.

    TEXT accepts only str. BINARY accepts bytes-like values and returns bytes
    (psycopg2 hands bytea back as memoryview).
    """
    if kind == TEXT:
        if isinstance(value, str):
            return value
    elif kind == BINARY:
        if isinstance(value, bytes):
            return value
        if isinstance(value, (bytearray, memoryview)):
            return bytes(value)
    else:
        raise ValueError(f"Unknown column kind: {kind}")
    raise DecodeError(f"expected {kind} column, got {type(value).__name__}")


def decode_row(raw: Sequence, columns: Sequence[str]) -> tuple:
    if len(raw) != len(columns):
        raise DecodeError(f"expected {len(columns)} columns, got {len(raw)}")
    return tuple(coerce(value, kind) for value, kind in zip(raw, columns))


def next_row(driver: Driver, cursor: int, columns: Sequence[str]):
    """Advance `cursor` one row and decode it against `columns`.

    Returns END_OF_RESULTS when the cursor is exhausted. Raises DecodeError
    when a column cannot be coerced; the cursor stays usable.
    """
    raw = driver.next_row(cursor)
    if raw is None:
        return END_OF_RESULTS
    return decode_row(raw, columns)


def iter_rows(driver: Driver, cursor: int, columns: Sequence[str]):
    """Yield every decodable row, skipping rows that fail to decode."""
    skipped = 0
    while True:
        try:
            row = next_row(driver, cursor, columns)
        except DecodeError as e:
            skipped += 1
            logger.warning("Skipping undecodable row: %s", e)
            continue
        if row is END_OF_RESULTS:
            break
        yield row
    if skipped:
        logger.info("Skipped %d undecodable row(s)", skipped)
