# barbershop/db.py

import logging
from typing import Optional

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from . import config

logger = logging.getLogger(__name__)


class Database:
    """Owns the engine (connection pool) for the process.

    Constructed once at startup, handed to request handlers through
    ``app.state.db`` and disposed at shutdown.
    """

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None, echo: bool = False):
        self.url = url or config.DATABASE_URL
        self.timeout = config.DB_TIMEOUT_SECONDS if timeout is None else timeout
        self.engine = self._create_engine(echo)

    def _create_engine(self, echo: bool) -> Engine:
        if self.url.startswith("sqlite"):
            engine = create_engine(
                self.url,
                echo=echo,
                # required for SQLite + FastAPI; timeout bounds the wait for the write lock
                connect_args={"check_same_thread": False, "timeout": self.timeout},
            )
            _serialize_sqlite_transactions(engine)
        else:
            engine = create_engine(
                self.url,
                echo=echo,
                isolation_level="SERIALIZABLE",
                pool_pre_ping=True,
                pool_size=config.DB_POOL_SIZE,
                max_overflow=config.DB_MAX_OVERFLOW,
                pool_timeout=self.timeout,
            )
        logger.info("Database engine created (%s)", engine.dialect.name)
        return engine

    def init(self) -> None:
        # import registers the tables on SQLModel.metadata
        from . import models  # noqa: F401

        SQLModel.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")

    def session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)


def _serialize_sqlite_transactions(engine: Engine) -> None:
    # pysqlite defers BEGIN until the first write; take the write lock up front
    # so a read-check-insert sequence runs as one serialized transaction.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# Dependency: one session per request
def get_session(request: Request):
    db: Database = request.app.state.db
    with db.session() as session:
        yield session
