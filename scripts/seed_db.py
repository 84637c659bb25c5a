"""Load the default onboarding template and one demo employee per role.

The demo employees are linked to the identities demo-admin, demo-hr,
demo-manager and demo-employee; send one of them as ``X-Actor-Id`` with the
matching ``X-Actor-Role`` to try the API locally.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.hr_onboarding.hr_onboarding.database.bootstrap import apply_seed_sql, ensure_demo_employees

if __name__ == "__main__":
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_employees(db_config)
    print(f"Seeded {db_config.get('database')} on {db_config.get('host')}")
