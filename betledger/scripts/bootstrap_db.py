#!/usr/bin/env python3
"""
bootstrap_db.py — Apply the ledger schema to the configured database.

What it does:
  1. Opens the pool against DATABASE_URL (fails fast if unreachable)
  2. Applies schema.sql (or the ORM metadata when no file is present)
  3. Lists the tables now present and checks bets + game_rules exist

Idempotent: every statement in schema.sql is CREATE ... IF NOT EXISTS.

Usage:
    python -m betledger.scripts.bootstrap_db
    python -m betledger.scripts.bootstrap_db --schema path/to/schema.sql
"""

import argparse
import asyncio
import sys

from betledger.config import load_settings
from betledger.database import Database
from betledger.errors import LedgerError

REQUIRED_TABLES = ("bets", "game_rules")


async def bootstrap(schema_path: "str | None" = None, db: "Database | None" = None) -> bool:
    """Returns True when every required table exists afterwards."""
    db = db or Database.from_settings(load_settings())

    async with db:
        print(f"[*] Applying schema to {db.safe_url}...")
        await db.ensure_schema(schema_path)
        print("[+] Schema applied.")

        tables = sorted(await db.table_names())
        print(f"[*] Tables now present: {', '.join(tables)}")

    missing = [t for t in REQUIRED_TABLES if t not in tables]
    if missing:
        print(f"[!] Missing required tables: {', '.join(missing)}")
        return False
    return True


def main(argv: "list[str] | None" = None) -> int:
    parser = argparse.ArgumentParser(description="Apply the bet ledger schema")
    parser.add_argument("--schema", help="Path to a DDL file (default: ./schema.sql)")
    args = parser.parse_args(argv)

    try:
        ok = asyncio.run(bootstrap(args.schema))
    except (LedgerError, ValueError) as exc:
        print(f"[!] Bootstrap failed: {exc}")
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
