"""Database connection and session management"""
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from listening_receipt.models.db import Base
from listening_receipt.config import settings

logger = logging.getLogger(__name__)

class Database:
    """Database connection and session manager for the client state store"""

    def __init__(self):
        """Initialize database manager state"""
        self._engine = None
        self._SessionLocal = None

    def init(self, url: Optional[str] = None) -> None:
        """
        Initialize database connection and create tables.

        Args:
            url: SQLAlchemy URL, defaults to STATE_DB_URL
        """
        try:
            self._engine = create_engine(url or settings.STATE_DB_URL)
            Base.metadata.create_all(self._engine)
            self._SessionLocal = sessionmaker(bind=self._engine)
            logger.info("Database initialized successfully")
        except SQLAlchemyError as e:
            logger.error(f"Database initialization failed: {e}")
            raise

    @property
    def initialized(self) -> bool:
        return self._SessionLocal is not None

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations"""
        if not self._SessionLocal:
            raise RuntimeError("Database not initialized. Call init() first.")

        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """
        Clean up database connections.
        Should be called during application shutdown.
        """
        if self._engine:
            self._engine.dispose()
            self._engine = None
            self._SessionLocal = None

# Global database instance
db = Database()
