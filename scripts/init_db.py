from __future__ import annotations

import importlib
from pathlib import Path

from school_records.database.bootstrap import apply_schema, list_tables
from school_records.database.connection import DBConfig
from school_records.settings import get_settings_module


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    schema_path = Path(__file__).resolve().parents[1] / "database" / "schema.sql"
    apply_schema(db_config, schema_path=schema_path)
    tables = list_tables(db_config)
    print(
        f"OK: Applied schema.sql -> {DBConfig.from_dict(db_config).label()} (tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
