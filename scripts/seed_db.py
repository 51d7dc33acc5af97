"""Insert the reference roles, permissions and role grants (safe to re-run)."""

from __future__ import annotations

import importlib

from school_records.database.bootstrap import ensure_reference_data
from school_records.database.connection import DBConfig
from school_records.settings import get_settings_module


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    ensure_reference_data(db_config)
    print(
        f"OK: Seeded roles and permissions -> {DBConfig.from_dict(db_config).label()}"
    )


if __name__ == "__main__":
    main()
