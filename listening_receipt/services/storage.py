"""Durable client storage for the PKCE verifier and the access token"""
import logging
from threading import Lock
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from listening_receipt.db import Database
from listening_receipt.models.db import ClientStateEntry

logger = logging.getLogger(__name__)

CODE_VERIFIER_KEY = "spotify_code_verifier"
ACCESS_TOKEN_KEY = "spotify_access_token"

class ClientStorage:
    """Key/value store with a single writer per key"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError("Subclasses must implement get")

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError("Subclasses must implement set")

    def delete(self, key: str) -> None:
        raise NotImplementedError("Subclasses must implement delete")

class MemoryClientStorage(ClientStorage):
    """In-process storage, used for tests and embedding"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})
        self._lock = Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._values

class SqlClientStorage(ClientStorage):
    """Handles client state persisted through SQLAlchemy"""

    def __init__(self, database: Database):
        self.database = database

    def get(self, key: str) -> Optional[str]:
        try:
            with self.database.session() as session:
                entry = session.get(ClientStateEntry, key)
                return entry.value if entry else None
        except SQLAlchemyError as e:
            logger.error(f"Database error reading client state '{key}': {e}")
            raise

    def set(self, key: str, value: str) -> None:
        """Insert or replace the value stored under key"""
        try:
            with self.database.session() as session:
                entry = session.get(ClientStateEntry, key)
                if entry:
                    entry.value = value
                else:
                    session.add(ClientStateEntry(key=key, value=value))
            logger.debug(f"Stored client state '{key}'")
        except SQLAlchemyError as e:
            logger.error(f"Database error storing client state '{key}': {e}")
            raise

    def delete(self, key: str) -> None:
        try:
            with self.database.session() as session:
                deleted = session.query(ClientStateEntry).filter_by(key=key).delete()
            if deleted:
                logger.debug(f"Deleted client state '{key}'")
        except SQLAlchemyError as e:
            logger.error(f"Database error deleting client state '{key}': {e}")
            raise
