# src/xconvert/adapters/persistence/database.py
"""
Database - Store Connection Lifecycle

This module owns the SQLAlchemy engine and session factory. The client is
constructed explicitly, connected once at startup and disposed at shutdown;
services receive it by injection. When the store cannot be reached the
client stays disconnected and every session raises StoreUnavailableError,
which read paths turn into empty (demo) results.

Files that USE this module:
- xconvert.app (connect/close around the server lifetime)
- xconvert.application.* (services open sessions through it)
- tests.conftest (in-memory SQLite store)

Files that this module USES:
- xconvert.adapters.persistence.tables (schema creation)
- xconvert.config (settings for the database URL)
- xconvert.domain.errors (StoreUnavailableError)
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from xconvert.adapters.persistence.tables import Base
from xconvert.config import settings
from xconvert.domain.errors import StoreUnavailableError

log = logging.getLogger(__name__)


class Database:
    """SQLAlchemy-backed store client with an explicit connect/close lifecycle."""

    def __init__(self, url: Optional[str] = None, echo: bool = False):
        """
        Args:
            url: SQLAlchemy URL (defaults to settings.database_url)
            echo: Log emitted SQL
        """
        self.url = url or settings.database_url
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def available(self) -> bool:
        return self._session_factory is not None

    def _engine_options(self) -> dict:
        url = make_url(self.url)
        if url.get_backend_name() != "sqlite":
            return {"pool_pre_ping": True}

        options: dict = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # One shared connection, or every session would see its own empty database
            options["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        return options

    def connect(self) -> bool:
        """
        Create the engine, check connectivity and make sure the schema exists.

        Returns:
            True if the store is usable, False if running in demo mode
        """
        if self.available:
            return True
        try:
            engine = create_engine(self.url, echo=self.echo, **self._engine_options())
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            Base.metadata.create_all(engine)
        except SQLAlchemyError as e:
            log.warning("Store not available, running in demo mode: %s", e)
            return False

        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        log.info("Connected to store: %s", make_url(self.url).render_as_string(hide_password=True))
        return True

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Open a unit of work; commits on success and rolls back on error.

        Raises:
            StoreUnavailableError: If the store is not connected or the connection drops
        """
        if self._session_factory is None:
            raise StoreUnavailableError("Store not connected")

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except OperationalError as e:
            session.rollback()
            log.error("Store operation failed: %s", e)
            raise StoreUnavailableError(f"Store unavailable: {e.orig}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Dispose of the connection pool."""
        if self._engine is not None:
            self._engine.dispose()
            log.info("Store connection closed")
        self._engine = None
        self._session_factory = None
