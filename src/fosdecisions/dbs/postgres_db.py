"""
Database setup and session management for SQLModel.

Provides a synchronous engine, session factory and table creation. Built
for PostgreSQL; any SQLAlchemy URL works, which is how SQLite is used for
local runs and tests.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from loguru import logger
from sqlalchemy import create_engine, Engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlmodel import SQLModel

from fosdecisions.utils.settings.core import DatabaseSettings


class PostgreSQLDatabase:
    """Lazy engine plus transactional sessions for the fos_decisions table."""

    def __init__(self, settings: DatabaseSettings):
        """
        Raises:
            ValueError: If no database URL is configured
        """
        self.settings = settings
        # Fail fast on a missing URL before any stage work starts
        self.connection_string = settings.connection_string
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        """Engine, created on first use"""
        if self._engine is None:
            self._engine = create_engine(
                self.connection_string,
                echo=self.settings.echo,
                connect_args=self.settings.connect_args,
            )
            url = make_url(self.connection_string)
            logger.info(f"Created engine for database: {url.database} ({url.get_backend_name()})")

        return self._engine

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @property
    def session_factory(self) -> sessionmaker:
        """Sessionmaker bound to the engine; objects stay usable after commit"""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                self.engine,
                class_=Session,
                expire_on_commit=False,
            )
            logger.debug("Created session factory")

        return self._session_factory

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """One transaction: commit on success, rollback and re-raise on error."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Session error: {e}")
            raise
        finally:
            session.close()

    def create_tables(self):
        """Create the fos_decisions table if it does not exist."""
        from fosdecisions.dbs.models import FosDecision

        SQLModel.metadata.create_all(self.engine, tables=[FosDecision.__table__])
        logger.info("Created database tables")

    def close(self):
        """Dispose the connection pool; the engine reconnects on next use"""
        if self._engine:
            self._engine.dispose()
            logger.debug("Closed database engine")
