"""Operator CLI for cross-tenant KV inspection.

    kvadmin list              # every owner's keys, grouped by owner
    kvadmin get OWNER:KEY     # one value from another owner's namespace
"""

import argparse
import sys

from .config import load_settings
from .database import open_driver
from .log_config import setup_logging
from .report import list_all_report, lookup_report, parse_owner_key
from .store import CrossTenantStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect every plugin's KV store")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List all keys from all plugins")
    get = sub.add_parser("get", help="Get a value from another plugin")
    get.add_argument("target", metavar="OWNER:KEY")
    return parser


def main(argv=None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "get":
        try:
            owner_id, key = parse_owner_key(args.target)
        except ValueError as e:
            parser.error(str(e))

    try:
        settings = load_settings()
        driver = open_driver(settings)
    except ValueError as e:
        parser.error(str(e))
    setup_logging(level=args.log_level, log_dir=settings.log_dir)

    try:
        store = CrossTenantStore(driver)
        if args.command == "list":
            report = list_all_report(store)
        else:
            report = lookup_report(store, owner_id, key)
    finally:
        driver.close()

    print(report.text)
    if not report.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
