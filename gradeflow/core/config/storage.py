from __future__ import annotations

import typing as t
from pathlib import Path

import pydantic as p

from .base import BaseSettings

IsolationLevel = t.Literal["READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE"]


class StorageSettings(BaseSettings):
    persistent: PersistentSettings


class PersistentSettings(BaseSettings):
    postgresql: PostgresqlSettings | None = None
    sqlite: SqliteSettings | None = None

    @p.model_validator(mode="after")
    def require_one_backend(self) -> t.Self:
        if (self.postgresql is None) == (self.sqlite is None):
            raise ValueError("exactly one of postgresql or sqlite must be configured")
        return self


class PostgresqlSettings(BaseSettings):
    host: p.IPvAnyAddress | str | None = None
    port: int = 5432
    database: str
    driver: t.Literal["postgresql+psycopg"] = "postgresql+psycopg"
    isolation_level: IsolationLevel = "REPEATABLE READ"


class SqliteSettings(BaseSettings):
    """SQLite database, in memory when no path is given"""

    path: Path | None = None
    driver: t.Literal["sqlite+pysqlite"] = "sqlite+pysqlite"
