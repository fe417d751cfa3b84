from __future__ import annotations

import sqlite3
import typing as t
from pathlib import Path

import alembic.config
import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm
import sqlalchemy.pool
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Factory, Object, Provider, Resource, Singleton
from sqlalchemy.engine.url import URL as DSN

import gradeflow.lib.json as json

from ..config.secrets import PostgresqlSecrets
from ..config.storage import PersistentSettings
from ..di import NotReady
from ..provider import LoggingProvider


def provide_dsn(config: PersistentSettings, secrets: PostgresqlSecrets) -> DSN:
    if config.sqlite is not None:
        database = str(config.sqlite.path) if config.sqlite.path else None
        return DSN.create(config.sqlite.driver, database=database)

    assert config.postgresql is not None
    pg = config.postgresql
    return DSN.create(
        pg.driver,
        database=pg.database,
        username=secrets.username.get_secret_value() if secrets.username else None,
        password=secrets.password.get_secret_value() if secrets.password else None,
        port=pg.port,
        host=str(pg.host) if pg.host else None,
    )


def provide_alembic_conf(migration_path: Path, dsn: DSN, root: Path | NotReady) -> alembic.config.Config:
    if isinstance(root, NotReady):
        raise RuntimeError("root path is unavailable")

    ac = alembic.config.Config()
    ac.set_main_option("script_location", str(root / migration_path))
    ac.set_section_option("alembic", "sqlalchemy.url", dsn.render_as_string(hide_password=False).replace("%", "%%"))
    ac.set_section_option("alembic", "file_template", "%%(year)d-%%(month).2d-%%(day).2d-%%(slug)s-%%(rev)s")
    return ac


def provide_engine(config: PersistentSettings, dsn: DSN, logging: LoggingProvider) -> sqlalchemy.Engine:
    logger = logging.get_logger()

    kwargs: dict[str, t.Any] = {"json_serializer": json.dumps, "json_deserializer": json.loads}
    if config.postgresql is not None:
        kwargs["isolation_level"] = config.postgresql.isolation_level
    elif dsn.database is None:
        # one shared connection, otherwise every checkout sees a fresh empty database
        kwargs["poolclass"] = sqlalchemy.pool.StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["connect_args"] = {"check_same_thread": False}

    engine = sqlalchemy.create_engine(dsn, **kwargs)
    if config.postgresql is not None:
        sqlalchemy.event.listen(engine, "connect", register_timezone)
    else:
        sqlalchemy.event.listen(engine, "connect", register_sqlite_pragmas)
        sqlalchemy.event.listen(engine, "begin", begin_sqlite_transaction)

    logger.info(
        "initialized SQLAlchemy engine",
        extra={
            "driver": dsn.drivername,
            "database": dsn.database,
            "host": dsn.host,
            "port": dsn.port,
            "isolation_level": kwargs.get("isolation_level"),
        },
    )
    return engine


def provide_session(engine: sqlalchemy.Engine) -> sqlalchemy.orm.Session:
    """Create a new session. Caller is responsible for closing it (via di.Manage)."""
    maker = sqlalchemy.orm.sessionmaker(engine, expire_on_commit=False, autoflush=False)
    return maker(autobegin=False)


class PersistentContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    settings: Provider[PersistentSettings] = Singleton(PersistentSettings, config)
    dsn: Provider[DSN] = Singleton(
        provide_dsn,
        config=settings,
        secrets=secrets.postgresql.as_(PostgresqlSecrets),
    )
    alembic_config: Provider[alembic.config.Config] = Singleton(
        provide_alembic_conf, migration_path=Path("migrations/"), dsn=dsn, root=root
    )
    engine: Provider[sqlalchemy.Engine] = Singleton(provide_engine, config=settings, dsn=dsn, logging=logging)
    session: Provider[sqlalchemy.orm.Session] = Factory(provide_session, engine=engine)


class StorageContainer(DeclarativeContainer):
    config = Configuration(strict=True)
    secrets = Configuration(strict=True)
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    persistent: Provider[PersistentContainer] = Container(
        PersistentContainer, config=config.persistent, secrets=secrets, logging=logging, root=root
    )


def register_timezone(dbapi_conn: t.Any, _: t.Any) -> None:
    """Set the connection timezone to UTC

    PostgreSQL returns TIMESTAMP WITH TIME ZONE values converted to the
    connection's timezone; pinning it keeps datetimes consistent across hosts.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("SET TIMEZONE TO 'UTC'")
    cursor.close()


def register_sqlite_pragmas(dbapi_conn: sqlite3.Connection, _: t.Any) -> None:
    # hand transaction control to SQLAlchemy so SAVEPOINT works
    dbapi_conn.isolation_level = None
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def begin_sqlite_transaction(conn: sqlalchemy.Connection) -> None:
    conn.exec_driver_sql("BEGIN IMMEDIATE")
