"""Create the database and apply database/schema.sql.

Usage: python scripts/init_db.py [--check]

``--check`` only reports which tables are missing and exits non-zero if any are.
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.presence_check.presence_check.database.bootstrap import apply_schema, list_tables, missing_tables


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Initialise the presence-check MySQL schema")
    parser.add_argument("--check", action="store_true", help="only verify that every table exists")
    args = parser.parse_args(argv)

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"

    if not args.check:
        apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")

    missing = missing_tables(list_tables(db_config))
    if missing:
        print(f"MISSING tables in {target}: {', '.join(missing)}")
        return 1
    print(f"OK: schema ready -> {target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
