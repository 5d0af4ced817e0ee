"""Human-readable rendering of cross-tenant listings and lookups.

Errors are returned as text on the Report, never raised, so a failed
query never takes down whatever is presenting the result.
"""

import logging
from dataclasses import dataclass

from .errors import KVAdminError
from .store import CrossTenantStore, KVEntry

logger = logging.getLogger(__name__)


@dataclass
class Report:
    text: str
    ok: bool = True


def group_by_owner(entries: list[KVEntry]) -> list[tuple[str, list[str]]]:
    """Group keys by owner, keeping first-seen owner order and per-owner key order."""
    groups: dict[str, list[str]] = {}
    for entry in entries:
        groups.setdefault(entry.owner_id, []).append(entry.key)
    return list(groups.items())


def parse_owner_key(arg: str) -> tuple[str, str]:
    """Split "owner:key" on the first colon; keys may contain further colons."""
    owner_id, sep, key = arg.partition(":")
    if not sep or not owner_id or not key:
        raise ValueError(f"Expected <ownerid:key>, got {arg!r}")
    return owner_id, key


def format_listing(entries: list[KVEntry]) -> str:
    if not entries:
        return "No keys found in any plugin's KV store"

    groups = group_by_owner(entries)
    lines = [f"**All Plugin KV Store Keys** (found {len(entries)} keys across {len(groups)} plugins):", ""]
    for owner_id, keys in groups:
        lines.append(f"**Plugin:** `{owner_id}` ({len(keys)} keys)")
        for i, key in enumerate(keys, start=1):
            lines.append(f"  {i}. `{key}`")
        lines.append("")
    return "\n".join(lines)


def format_entry(entry: KVEntry) -> str:
    value = entry.value.decode("utf-8", errors="replace") if entry.value is not None else ""
    return f"**Plugin:** `{entry.owner_id}`\n**Key:** `{entry.key}`\n**Value:** {value}"


def list_all_report(store: CrossTenantStore) -> Report:
    try:
        entries = store.list_all()
    except KVAdminError as e:
        logger.error("Listing all keys failed: %s", e)
        return Report(text=f"Error listing keys from all plugins: {e}", ok=False)
    return Report(text=format_listing(entries))


def lookup_report(store: CrossTenantStore, owner_id: str, key: str) -> Report:
    try:
        entry = store.lookup(owner_id, key)
    except KVAdminError as e:
        logger.error("Lookup of %s:%s failed: %s", owner_id, key, e)
        return Report(text=f"Error getting key from plugin `{owner_id}`: {e}", ok=False)
    return Report(text=format_entry(entry))
