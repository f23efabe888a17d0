"""
Session database models.
Contains: SessionRecord
"""
from sqlalchemy import Column, Integer, Boolean, String, DateTime, JSON

from app.db import Base
from .core import utcnow


class SessionRecord(Base):
    """Server-side state of one browser, keyed by the id carried in the session cookie"""
    __tablename__ = "sessions"

    id = Column(String(64), primary_key=True, index=True)
    is_admin = Column(Boolean, default=False, nullable=False)
    # Weak reference: no foreign key, the admin row may go away independently.
    admin_id = Column(Integer, nullable=True)
    flashes = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
