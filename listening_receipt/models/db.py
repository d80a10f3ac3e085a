"""SQLAlchemy database models for persisted client state"""
import datetime

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)

class ClientStateEntry(Base):
    """
    One key of durable client storage.
    Holds the pending PKCE verifier and the session access token.
    """
    __tablename__ = 'client_state'

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
