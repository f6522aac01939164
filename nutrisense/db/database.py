"""
Database configuration and session management.

The ``Database`` object is the store handle: it is created once at process
start and passed explicitly to whatever needs a session. Nothing in this
module opens connections at import time.
"""

from contextlib import contextmanager
from typing import Generator, Optional

import structlog
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = structlog.get_logger(__name__)

# Base class for all models
Base = declarative_base()


class Database:
    """Owns the SQLAlchemy engine and hands out sessions."""

    def __init__(self, url: str, echo: bool = False, engine: Optional[Engine] = None):
        self.url = url
        self.engine = engine or self._build_engine(url, echo)
        self.session_factory = sessionmaker(
            bind=self.engine,
            autoflush=True,
            autocommit=False,
            expire_on_commit=False,
        )

    @staticmethod
    def _build_engine(url: str, echo: bool) -> Engine:
        if url.startswith("sqlite"):
            kwargs = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in url or url.rstrip("/") == "sqlite:":
                # Single shared connection so every session sees the same in-memory db
                kwargs["poolclass"] = StaticPool
            return create_engine(url, echo=echo, **kwargs)

        return create_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
            pool_recycle=3600,  # 1 hour
        )

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Transactional scope around a series of operations.
        Commits on success, rolls back and re-raises on any failure.
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_session(self) -> Generator[Session, None, None]:
        """Generator form of ``session_scope`` for FastAPI dependencies."""
        with self.session_scope() as session:
            yield session

    def create_all(self) -> None:
        """
        Create all tables.
        Only use in development and tests.
        """
        # Import all models to ensure they're registered
        from nutrisense.db import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created", url=self.url)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        """Close database connections gracefully."""
        self.engine.dispose()
