from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "ops_portal"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from ops_portal.database.bootstrap import apply_schema, ensure_master_admin, list_tables


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply database/schema.sql and seed the master admin.")
    parser.add_argument("--admin-username", default=None)
    parser.add_argument("--admin-password", default=None)
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    schema_path = REPO_ROOT / "database" / "schema.sql"
    apply_schema(db_config, schema_path=schema_path)
    tables = list_tables(db_config)
    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )

    password = args.admin_password or getattr(settings, "MASTER_ADMIN_PASSWORD", None)
    if password:
        username = args.admin_username or getattr(settings, "MASTER_ADMIN_USERNAME", "admin")
        created = ensure_master_admin(db_config, username=username, password=password)
        print(f"Master admin '{username}': {'created' if created else 'already present'}")


if __name__ == "__main__":
    main()
