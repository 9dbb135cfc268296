"""
PostgreSQL engine and session management for the creche backend.

One engine per process. Long-running servers pool connections with
QueuePool; serverless deployments (``VERCEL`` set) open a fresh connection
per invocation with NullPool and expect the tables to exist already.
"""

import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, QueuePool

load_dotenv()

# Models must be imported so their tables are registered on Base
from .models import Base

logger = logging.getLogger(__name__)

SLOW_CHECKOUT_MS = 100


@dataclass
class DatabaseConfig:
    """Connection settings read from the environment."""

    url: str
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 3600
    echo: bool = False
    serverless: bool = False

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        url = os.getenv("DATABASE_URL")
        if not url:
            raise ValueError("DATABASE_URL is not set; the creche API needs a PostgreSQL database.")
        return cls(
            url=url,
            pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
            max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
            pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
            pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "3600")),
            echo=os.getenv("SQL_ECHO", "false").lower() == "true",
            serverless=bool(os.getenv("VERCEL")),
        )

    @property
    def host(self) -> str:
        # Credentials stay out of the logs
        return self.url.split("@", 1)[1] if "@" in self.url else "<configured>"


class DatabaseManager:
    """
    Process-wide owner of the engine and session factory.

    Usage:
        with get_db_manager().session() as session:
            session.query(Child).filter_by(class_type="bercario").all()
    """

    _instance: Optional["DatabaseManager"] = None
    _engine: Optional[Engine] = None
    _session_factory: Optional[sessionmaker] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._engine is None:
            self._engine = self._build_engine(DatabaseConfig.from_env())
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    @staticmethod
    def _build_engine(config: DatabaseConfig) -> Engine:
        logger.info("Database: connecting to %s", config.host)
        if config.serverless:
            engine = create_engine(config.url, poolclass=NullPool, echo=config.echo)
            logger.info("Database: NullPool (serverless)")
        else:
            engine = create_engine(
                config.url,
                poolclass=QueuePool,
                pool_size=config.pool_size,
                max_overflow=config.max_overflow,
                pool_timeout=config.pool_timeout,
                pool_recycle=config.pool_recycle,
                echo=config.echo,
            )
            logger.info("Database: QueuePool (size=%s, overflow=%s)", config.pool_size, config.max_overflow)

        @event.listens_for(engine, "checkout")
        def ping_on_checkout(dbapi_conn, connection_record, connection_proxy):
            # A failing ping invalidates the pooled connection
            start = time.time()
            cursor = dbapi_conn.cursor()
            try:
                cursor.execute("SELECT 1")
            finally:
                cursor.close()
            elapsed_ms = (time.time() - start) * 1000
            if elapsed_ms > SLOW_CHECKOUT_MS:
                logger.warning("Slow connection checkout: %.2fms", elapsed_ms)

        return engine

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Session committed on success and rolled back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self):
        Base.metadata.create_all(self._engine)
        logger.info("Database: tables created")

    def dispose(self):
        self._engine.dispose()
        logger.info("Database: connection pool disposed")


def get_db_manager() -> DatabaseManager:
    return DatabaseManager()


def get_engine() -> Engine:
    return get_db_manager().engine


def init_db():
    """Create all tables. Used by the FastAPI lifespan and the seed script."""
    get_db_manager().create_all()


def get_db_session() -> Generator[Session, None, None]:
    """
    FastAPI dependency: one session per request.

    Routes commit their own writes; anything left pending is committed
    when the request finishes and rolled back if it raised.
    """
    with get_db_manager().session() as session:
        yield session
