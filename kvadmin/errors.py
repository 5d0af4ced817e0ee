"""Error taxonomy for cross-tenant KV access.

Driver-library exceptions are translated into these at the driver boundary,
so callers only ever handle KVAdminError subclasses.
"""


class KVAdminError(Exception):
    """Base class for every error raised by kvadmin."""


class DriverConnectionError(KVAdminError):
    """The driver could not produce a database connection."""


class QueryError(KVAdminError):
    """A query was malformed, rejected, or lost its connection mid-flight."""


class DecodeError(KVAdminError):
    """A result column could not be coerced to the expected type."""


class NotFoundError(KVAdminError):
    """A point lookup matched no usable row."""

    def __init__(self, owner_id: str, key: str):
        super().__init__(f"key `{key}` not found for owner `{owner_id}`")
        self.owner_id = owner_id
        self.key = key


class AggregationError(KVAdminError):
    """The cross-tenant listing failed; wraps the underlying error as __cause__."""
