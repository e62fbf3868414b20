"""Dispatch management CLI.

Usage:
    python src/manage.py setup-db    # Create all tables
    python src/manage.py drop-db     # Drop all tables
    python src/manage.py reconcile   # Derive pending shop payments from delivered orders
    python src/manage.py summary     # Print per-shop settlement totals
"""

import argparse
import json
import sys


def _get_domain():
    from dispatch.domain import dispatch

    print("Initializing dispatch domain...")
    dispatch.init()
    return dispatch


def setup_database():
    from dispatch.utils.db import setup_db

    domain = _get_domain()
    print("Creating dispatch database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from dispatch.utils.db import drop_db

    domain = _get_domain()
    print("Dropping dispatch database schema...")
    drop_db(domain)
    print("Done.")


def reconcile():
    from dispatch.settlement.scheduler import reconcile_once

    report = reconcile_once(_get_domain())
    print(json.dumps(report.to_dict(), indent=2))


def summary(shop_name=None):
    from dispatch.settlement.summary import summarize_per_shop

    domain = _get_domain()
    with domain.domain_context():
        rows = [row.to_dict() for row in summarize_per_shop(shop_name)]
    print(json.dumps(rows, indent=2))


def main():
    parser = argparse.ArgumentParser(description="Dispatch management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("reconcile", help="Run settlement reconciliation once")
    summary_parser = subparsers.add_parser("summary", help="Print per-shop settlement totals")
    summary_parser.add_argument("--shop", help="Only this shop")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "reconcile":
        reconcile()
    elif args.command == "summary":
        summary(args.shop)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
