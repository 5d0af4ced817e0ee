"""kvadmin - read-only dashboard API over every plugin's KV store"""

import threading

from flask import Flask, jsonify

from kvadmin.config import load_settings
from kvadmin.database import open_driver
from kvadmin.errors import AggregationError, KVAdminError, NotFoundError
from kvadmin.report import group_by_owner
from kvadmin.store import CrossTenantStore

app = Flask(__name__)

_store = None
_store_lock = threading.Lock()


def get_store() -> CrossTenantStore:
    """Build the store on first use so importing the app needs no database."""
    global _store
    with _store_lock:
        if _store is None:
            _store = CrossTenantStore(open_driver(load_settings()))
        return _store


@app.route("/health")
def health():
    """Health check endpoint."""
    return jsonify({"status": "healthy"})


@app.route("/api/entries")
def api_entries():
    """All keys from all plugins, grouped by owner."""
    try:
        entries = get_store().list_all()
    except AggregationError as e:
        return jsonify({"error": f"Error listing keys from all plugins: {e}"}), 500

    return jsonify({
        "total": len(entries),
        "owners": [
            {"owner_id": owner_id, "keys": keys}
            for owner_id, keys in group_by_owner(entries)
        ],
    })


@app.route("/api/entries/<owner_id>/<path:key>")
def api_entry(owner_id, key):
    """One value from another plugin's namespace."""
    try:
        entry = get_store().lookup(owner_id, key)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except KVAdminError as e:
        return jsonify({"error": f"Error getting key from plugin `{owner_id}`: {e}"}), 502

    return jsonify({
        "owner_id": entry.owner_id,
        "key": entry.key,
        "value": entry.value.decode("utf-8", errors="replace"),
    })


if __name__ == "__main__":
    app.run(host="127.0.0.1", port=3000)
