"""Handle-based database driver capability.

Callers never hold library connection or cursor objects. They hold integer
handles issued here and pass them back in, which keeps ownership explicit
and lets release be safe to call twice.

Two drivers ship with kvadmin:
  - Psycopg2Driver: PostgreSQL via pooled psycopg2 connections, with an
    optional read replica. Parameterized queries use numbered `$N`
    placeholders bound server-side through PREPARE/EXECUTE.
  - SQLiteDriver: a read-only sqlite3 file, `?` placeholders.
"""

import itertools
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional, Sequence

import psycopg2
from psycopg2 import pool

from ..config import Settings
from ..errors import DriverConnectionError, QueryError

logger = logging.getLogger(__name__)


class Driver:
    """Base driver: handle bookkeeping around library-specific hooks."""

    driver_name = ""

    def __init__(self, driver_name: Optional[str] = None):
        if driver_name:
            self.driver_name = driver_name
        self._lock = threading.Lock()
        self._handles = itertools.count(1)
        self._connections = {}
        self._cursors = {}

    # --- Connections ---

    def acquire_connection(self, prefer_master: bool = False) -> int:
        conn = self._connect(prefer_master)
        with self._lock:
            handle = next(self._handles)
            self._connections[handle] = conn
        logger.debug("Acquired connection %d (prefer_master=%s)", handle, prefer_master)
        return handle

    def release_connection(self, handle: int) -> None:
        with self._lock:
            conn = self._connections.pop(handle, None)
        if conn is None:
            logger.debug("Connection %d already released", handle)
            return
        self._disconnect(conn)
        logger.debug("Released connection %d", handle)

    # --- Cursors ---

    def query(self, handle: int, sql: str, params: Sequence = ()) -> int:
        with self._lock:
            conn = self._connections.get(handle)
            cursor_handle = next(self._handles)
        if conn is None:
            raise QueryError(f"unknown connection handle {handle}")

        cursor = self._execute(conn, sql, tuple(params), cursor_handle)
        with self._lock:
            self._cursors[cursor_handle] = cursor
        logger.debug("Opened cursor %d on connection %d", cursor_handle, handle)
        return cursor_handle

    def next_row(self, cursor_handle: int) -> Optional[tuple]:
        """Return the next raw row, or None once the result set is exhausted."""
        with self._lock:
            cursor = self._cursors.get(cursor_handle)
        if cursor is None:
            raise QueryError(f"unknown cursor handle {cursor_handle}")
        return self._fetch(cursor)

    def release_cursor(self, cursor_handle: int) -> None:
        with self._lock:
            cursor = self._cursors.pop(cursor_handle, None)
        if cursor is None:
            logger.debug("Cursor %d already released", cursor_handle)
            return
        self._close_cursor(cursor)
        logger.debug("Released cursor %d", cursor_handle)

    def close(self) -> None:
        pass

    # --- Library hooks ---

    def _connect(self, prefer_master):
        raise NotImplementedError

    def _disconnect(self, conn):
        raise NotImplementedError

    def _execute(self, conn, sql, params, cursor_handle):
        raise NotImplementedError

    def _fetch(self, cursor):
        raise NotImplementedError

    def _close_cursor(self, cursor):
        raise NotImplementedError


class Psycopg2Driver(Driver):
    driver_name = "postgres"

    def __init__(
        self,
        primary_url: str,
        replica_url: Optional[str] = None,
        max_connections: int = 5,
        connect_timeout: int = 10,
        driver_name: Optional[str] = None,
    ):
        super().__init__(driver_name)
        self.primary_url = primary_url
        self.replica_url = replica_url
        self.max_connections = max_connections
        self.connect_timeout = connect_timeout
        self._pools = {}

    def _pool_for(self, url: str) -> pool.ThreadedConnectionPool:
        with self._lock:
            conn_pool = self._pools.get(url)
            if conn_pool is None:
                conn_pool = pool.ThreadedConnectionPool(
                    0, self.max_connections, url, connect_timeout=self.connect_timeout
                )
                self._pools[url] = conn_pool
        return conn_pool

    def _connect(self, prefer_master):
        url = self.primary_url
        if not prefer_master and self.replica_url:
            url = self.replica_url

        conn_pool = self._pool_for(url)
        try:
            conn = conn_pool.getconn()
        except pool.PoolError as e:
            raise DriverConnectionError(f"connection pool exhausted: {e}") from e
        except psycopg2.Error as e:
            raise DriverConnectionError(f"failed to get database connection: {e}") from e

        try:
            conn.set_session(readonly=True, autocommit=True)
        except psycopg2.Error as e:
            conn_pool.putconn(conn, close=True)
            raise DriverConnectionError(f"failed to configure database session: {e}") from e
        return conn_pool, conn

    def _disconnect(self, conn):
        conn_pool, raw = conn
        try:
            conn_pool.putconn(raw, close=bool(raw.closed))
        except psycopg2.Error as e:
            logger.warning("Failed to return connection to pool: %s", e)

    def _execute(self, conn, sql, params, cursor_handle):
        _, raw = conn
        statement = None
        try:
            cur = raw.cursor()
        except psycopg2.Error as e:
            raise QueryError(f"failed to query KV store: {e}") from e

        try:
            if params:
                name = f"kvadmin_stmt_{cursor_handle}"
                cur.execute(f"PREPARE {name} AS {sql}")
                statement = name
                placeholders = ", ".join(["%s"] * len(params))
                cur.execute(f"EXECUTE {name} ({placeholders})", params)
            else:
                cur.execute(sql)
        except psycopg2.Error as e:
            self._close_cursor((cur, statement))
            raise QueryError(f"failed to query KV store: {e}") from e
        return cur, statement

    def _fetch(self, cursor):
        cur, _ = cursor
        try:
            return cur.fetchone()
        except psycopg2.Error as e:
            raise QueryError(f"failed to read query results: {e}") from e

    def _close_cursor(self, cursor):
        cur, statement = cursor
        try:
            if statement and not cur.closed:
                cur.execute(f"DEALLOCATE {statement}")
            cur.close()
        except psycopg2.Error as e:
            logger.warning("Failed to close cursor cleanly: %s", e)

    def close(self) -> None:
        with self._lock:
            pools = list(self._pools.values())
            self._pools.clear()
        for conn_pool in pools:
            conn_pool.closeall()


class SQLiteDriver(Driver):
    driver_name = "sqlite3"

    def __init__(self, path: str, driver_name: Optional[str] = None):
        super().__init__(driver_name)
        self.path = path

    def _connect(self, prefer_master):
        try:
            uri = Path(self.path).resolve().as_uri() + "?mode=ro"
            return sqlite3.connect(uri, uri=True, check_same_thread=False)
        except sqlite3.Error as e:
            raise DriverConnectionError(f"failed to open {self.path}: {e}") from e

    def _disconnect(self, conn):
        conn.close()

    def _execute(self, conn, sql, params, cursor_handle):
        cur = conn.cursor()
        try:
            cur.execute(sql, params)
        except sqlite3.Error as e:
            cur.close()
            raise QueryError(f"failed to query KV store: {e}") from e
        return cur

    def _fetch(self, cursor):
        try:
            return cursor.fetchone()
        except sqlite3.Error as e:
            raise QueryError(f"failed to read query results: {e}") from e

    def _close_cursor(self, cursor):
        cursor.close()


def open_driver(settings: Settings) -> Driver:
    """Build the driver matching the configured admin database URL."""
    url = settings.database_url
    if url.startswith("sqlite:///"):
        return SQLiteDriver(url[len("sqlite:///"):], driver_name=settings.driver_name)
    if url.startswith(("postgres://", "postgresql://")):
        return Psycopg2Driver(
            url,
            replica_url=settings.replica_url,
            max_connections=settings.max_connections,
            connect_timeout=settings.connect_timeout,
            driver_name=settings.driver_name,
        )
    raise ValueError(f"Unsupported database URL scheme: {url.split(':', 1)[0]}")
