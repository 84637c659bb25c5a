"""Create the database if needed and apply database/schema.sql.

Usage: ``APP_ENV=development python scripts/init_db.py [--seed]``
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.hr_onboarding.hr_onboarding.database.bootstrap import (
    apply_schema,
    apply_seed_sql,
    ensure_demo_employees,
    list_tables,
)


def main(argv: list[str]) -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    print(f"schema  -> {target}: {', '.join(sorted(list_tables(db_config)))}")

    if "--seed" in argv:
        apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
        ensure_demo_employees(db_config)
        print(f"seed    -> {target}: default template + demo employees")


if __name__ == "__main__":
    main(sys.argv[1:])
