from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import mysql.connector

DEFAULT_PORT = 3306


@dataclass(frozen=True)
class DBConfig:
    """MySQL connection target built from a settings ``DB_CONFIG`` mapping."""

    host: str
    user: str
    password: str
    database: str
    port: int = DEFAULT_PORT

    @classmethod
    def from_dict(cls, db_config: Mapping[str, Any]) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", DEFAULT_PORT)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "school_records")),
        )

    def connect_kwargs(self, *, with_database: bool = True) -> dict[str, Any]:
        # autocommit off: db_cursor owns commit/rollback
        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "autocommit": False,
        }
        if with_database:
            kwargs["database"] = self.database
        return kwargs

    def label(self) -> str:
        """``user@host:port/database``, for logs; never includes the password."""

        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Process-wide factory of short-lived connections, one per ``db_cursor`` block."""

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self.config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance.config != config:
            cls._instance = cls(config)
        return cls._instance

    def connect(self, *, with_database: bool = True):
        return mysql.connector.connect(**self.config.connect_kwargs(with_database=with_database))
