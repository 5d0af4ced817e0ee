"""Cross-tenant reads against the host's shared plugin KV table.

The host's KV API only exposes the calling plugin's own namespace. These
queries go straight to PluginKeyValueStore, so CrossTenantStore must be
given a driver built from the admin database credentials.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .database import (
    BINARY,
    END_OF_RESULTS,
    TEXT,
    Driver,
    dialect_for_driver,
    iter_rows,
    lease_connection,
    next_row,
    open_cursor,
    translate,
)
from .errors import AggregationError, DecodeError, DriverConnectionError, NotFoundError, QueryError

logger = logging.getLogger(__name__)

# Columns: PluginId, PKey, PValue, ExpireAt
LIST_ALL_QUERY = "SELECT PluginId, PKey FROM PluginKeyValueStore ORDER BY PluginId, PKey"
LOOKUP_QUERY = "SELECT PValue FROM PluginKeyValueStore WHERE PluginId = ? AND PKey = ?"


@dataclass
class KVEntry:
    owner_id: str
    key: str
    value: Optional[bytes] = None


class CrossTenantStore:
    def __init__(self, driver: Driver):
        self.driver = driver

    def list_all(self) -> list[KVEntry]:
        """Every (owner, key) pair in the shared table, ordered by owner then key.

        Rows that fail to decode are skipped. Connection or query failures
        raise AggregationError and no partial listing is returned.
        """
        try:
            with lease_connection(self.driver) as conn:
                with open_cursor(self.driver, conn, LIST_ALL_QUERY) as cursor:
                    entries = [
                        KVEntry(owner_id=owner_id, key=key)
                        for owner_id, key in iter_rows(self.driver, cursor, (TEXT, TEXT))
                    ]
        except (DriverConnectionError, QueryError) as e:
            raise AggregationError(str(e)) from e

        logger.info("Listed %d keys across all owners", len(entries))
        return entries

    def lookup(self, owner_id: str, key: str) -> KVEntry:
        """Fetch one value from another owner's namespace.

        Raises NotFoundError when no row matches or the value is not binary.
        """
        query = translate(LOOKUP_QUERY, dialect_for_driver(self.driver.driver_name))
        with lease_connection(self.driver) as conn:
            with open_cursor(self.driver, conn, query, (owner_id, key)) as cursor:
                try:
                    row = next_row(self.driver, cursor, (BINARY,))
                except DecodeError as e:
                    logger.warning("Undecodable value for %s:%s: %s", owner_id, key, e)
                    raise NotFoundError(owner_id, key) from e

        if row is END_OF_RESULTS:
            raise NotFoundError(owner_id, key)
        return KVEntry(owner_id=owner_id, key=key, value=row[0])
