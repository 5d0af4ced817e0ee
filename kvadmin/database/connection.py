"""Scoped connection leases."""

from contextlib import contextmanager

from .driver import Driver


@contextmanager
def lease_connection(driver: Driver, prefer_master: bool = False):
    """Context manager yielding a connection handle, released on every exit path.

    prefer_master=False reads from a replica when one is configured.
    Raises DriverConnectionError if no connection can be obtained.
    """
    handle = driver.acquire_connection(prefer_master)
    try:
        yield handle
    finally:
        driver.release_connection(handle)
