"""Schema health assertions.

Run against the configured database:
  python scripts/assert_schema_health.py

Checks:
  1. All application tables exist
  2. vegetables.name carries a unique constraint (catalogue upserts rely on it)
"""
from __future__ import annotations

import os
import sys

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Inspector

EXPECTED_TABLES = {"vegetables", "providers", "signers", "bills"}


def sync_url(url: str) -> str:
    return url.replace("+aiosqlite", "").replace("+asyncpg", "+psycopg")


def assert_tables(insp: Inspector) -> None:
    missing = EXPECTED_TABLES - set(insp.get_table_names())
    if missing:
        raise SystemExit(f"Missing tables: {sorted(missing)}")
    print("[ok] all tables present")


def assert_vegetable_name_unique(insp: Inspector) -> None:
    unique_sets = [tuple(c["column_names"]) for c in insp.get_unique_constraints("vegetables")]
    unique_sets += [tuple(ix["column_names"]) for ix in insp.get_indexes("vegetables") if ix.get("unique")]
    if ("name",) not in unique_sets:
        raise SystemExit("vegetables.name is not unique")
    print("[ok] vegetables.name unique")


def main(url: str | None = None) -> int:
    url = url or os.environ.get("DATABASE_URL")
    if not url:
        raise SystemExit("DATABASE_URL not set")
    engine = create_engine(sync_url(url), pool_pre_ping=True)
    try:
        insp = inspect(engine)
        assert_tables(insp)
        assert_vegetable_name_unique(insp)
    finally:
        engine.dispose()
    print("Schema health OK.")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1] if len(sys.argv) > 1 else None))
