"""
Catdex — Connection Pool Manager
==================================

What:  SQLAlchemy engine, bounded connection pool, and session acquisition.
Why:   The pool is the only shared mutable resource across requests; keeping
       all acquisition logic here means one place translates pool failures.
How:   A synchronous engine over a QueuePool with a bounded checkout wait.
       Callers use ConnectionPool.acquire() from a blocking worker thread
       (see workers.py), never from the event loop.
Who:   Built once by create_app() and injected into the repository.

Connection Pooling Strategy:
    pool_size=10:       Persistent connections for normal load
    max_overflow=0:     The pool never grows past pool_size
    pool_timeout=5:     A checkout waits at most 5 seconds, then fails with
                        PoolExhaustedError (no connection is held afterwards)
    pool_pre_ping:      Validates connections before use
    pool_recycle=3600:  Recycles connections every hour
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, exc, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session
from sqlalchemy.pool import QueuePool

from catdex.config import Settings
from catdex.exceptions import ConfigurationError, PoolExhaustedError, UnexpectedError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata for Alembic)."""
    pass


def build_engine(settings: Settings) -> Engine:
    """
    Create the engine backing the pool.

    Raises:
        ConfigurationError: DATABASE_URL is empty or not a valid SQLAlchemy URL.
    """
    if not settings.database_url:
        raise ConfigurationError("DATABASE_URL must be set")

    connect_args = {}
    if settings.database_url.startswith("sqlite"):
        # Connections are created and used on worker threads, not the creating thread
        connect_args["check_same_thread"] = False

    try:
        return create_engine(
            settings.database_url,
            poolclass=QueuePool,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
            connect_args=connect_args,
            echo=settings.log_level == "DEBUG",
        )
    except (exc.ArgumentError, ImportError) as e:
        raise ConfigurationError(f"Cannot build database engine: {e}") from e


class ConnectionPool:
    """
    Bounded pool of live database connections with timed acquisition.

    Every acquire() checks out exactly one connection and returns it when the
    `with` block exits, so a caller owns a connection for one unit of work only.
    """

    def __init__(self, engine: Engine, timeout: float):
        self.engine = engine
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConnectionPool":
        pool = cls(build_engine(settings), settings.db_pool_timeout)
        logger.info(
            "Connection pool configured: size=%d overflow=%d timeout=%.1fs",
            settings.db_pool_size,
            settings.db_max_overflow,
            settings.db_pool_timeout,
        )
        return pool

    @contextmanager
    def acquire(self) -> Iterator[Session]:
        """
        Check out one connection and yield a Session bound to it.

        Blocks for at most `timeout` seconds. Must be called off the event loop.

        Raises:
            PoolExhaustedError: No connection became free within the timeout.
            UnexpectedError:    The connection could not be established.
        """
        try:
            connection = self.engine.connect()
        except exc.TimeoutError as e:
            logger.error("No database connection available within %.1fs", self.timeout)
            raise PoolExhaustedError(timeout=self.timeout) from e
        except exc.SQLAlchemyError as e:
            logger.error("Failed to get DB connection from pool: %s", e)
            raise UnexpectedError(
                operation="acquire",
                context={"error_type": type(e).__name__},
            ) from e

        with connection:
            with Session(bind=connection, expire_on_commit=False) as session:
                yield session

    def ping(self) -> None:
        """Run SELECT 1 on a pooled connection (startup check and /health)."""
        with self.acquire() as session:
            try:
                session.execute(text("SELECT 1"))
            except exc.SQLAlchemyError as e:
                raise UnexpectedError(
                    operation="ping",
                    context={"error_type": type(e).__name__},
                ) from e

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()
