"""Database configuration and session management."""

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

if TYPE_CHECKING:
    from filite.config import Settings

logger = logging.getLogger(__name__)

Base: Any = declarative_base()


class Database:
    """Store handle: one engine and session factory per process.

    Built once at startup and handed to whatever needs it, either directly
    (CLI, tests) or through ``request.app.state.database``.
    """

    def __init__(self, url: str, timeout: float = 30.0, pool_size: int = 5, max_overflow: int = 10):
        self.url = url
        if url.startswith("sqlite"):
            # Concurrent writers wait on the SQLite lock instead of failing
            self.engine = create_engine(
                url,
                connect_args={"check_same_thread": False, "timeout": timeout},
            )
        else:
            self.engine = create_engine(
                url,
                pool_pre_ping=True,
                pool_size=pool_size,
                max_overflow=max_overflow,
            )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Database":
        """Build the handle described by the application settings."""
        return cls(
            settings.database_url,
            timeout=settings.database_timeout,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
        )

    def create_all(self) -> None:
        """Create the entries and users tables if they do not exist."""
        # Import all models here so they are registered with Base.metadata
        from filite import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.debug(f"Tables ready on {self.engine.url!r}")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Open a session that is closed on exit."""
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def dispose(self) -> None:
        """Close every pooled connection."""
        self.engine.dispose()


def get_database(request: Request) -> Database:
    """Dependency that provides the application's store handle."""
    return request.app.state.database


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    db = get_database(request).SessionLocal()
    try:
        yield db
    finally:
        db.close()
