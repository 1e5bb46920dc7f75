from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.poap_attendance.poap_attendance.database.bootstrap import (
    DEMO_ADMIN,
    DEMO_LECTURER,
    DEMO_STUDENT,
    apply_seed_sql,
    ensure_demo_accounts,
)


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_accounts(db_config)

    print(f"OK: Seeded database -> {db_config.get('host')}/{db_config.get('database')}")
    print(f"  admin:    {DEMO_ADMIN}")
    print(f"  lecturer: {DEMO_LECTURER}")
    print(f"  student:  {DEMO_STUDENT}")


if __name__ == "__main__":
    main()
