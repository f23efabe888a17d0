"""Server-side sessions.

The browser only holds a signed cookie (a JWT whose `sid` claim names a row in
the `sessions` table). Anonymous sessions live in memory until something is
stored in them, so plain page views never create rows.
"""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from fastapi import Depends, Request
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from domain.models import SessionRecord, utcnow
from domain.services.base import BaseStore
from .db import get_db
from .settings import JWT_ALGORITHM, SECRET_KEY, SESSION_COOKIE_NAME, SESSION_TTL_SECONDS

logger = logging.getLogger(__name__)


def _new_session_id() -> str:
    return secrets.token_urlsafe(32)


def _new_expiry() -> datetime:
    return utcnow() + timedelta(seconds=SESSION_TTL_SECONDS)


@dataclass
class ServerSession:
    """Session state for one browser, as seen by the current request."""
    id: str = field(default_factory=_new_session_id)
    is_admin: bool = False
    admin_id: Optional[int] = None
    flashes: Dict[str, List[str]] = field(default_factory=dict)
    expires_at: datetime = field(default_factory=_new_expiry)
    # Row exists in the sessions table.
    persisted: bool = False
    # Response must (re)issue / clear the cookie.
    issue_cookie: bool = False
    clear_cookie: bool = False


class SessionManager(BaseStore):
    """Resolve, persist, elevate and destroy sessions stored in the `sessions` table."""

    # ---------- cookie codec ----------

    @staticmethod
    def encode_cookie(session: ServerSession) -> str:
        return jwt.encode({"sid": session.id, "exp": session.expires_at}, SECRET_KEY, algorithm=JWT_ALGORITHM)

    @staticmethod
    def decode_cookie(value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            payload = jwt.decode(value, SECRET_KEY, algorithms=[JWT_ALGORITHM])
        except JWTError:
            return None
        sid = payload.get("sid")
        return sid if isinstance(sid, str) else None

    # ---------- lifecycle ----------

    def resolve(self, cookie_value: Optional[str]) -> ServerSession:
        """Existing unexpired session for this cookie, or a fresh anonymous one."""
        sid = self.decode_cookie(cookie_value)
        if sid is None:
            return ServerSession()
        with self.guard():
            record = self.db.query(SessionRecord).filter(SessionRecord.id == sid).first()
            if record is None:
                return ServerSession()
            if record.expires_at <= utcnow():
                self.db.delete(record)
                self.db.commit()
                return ServerSession(clear_cookie=True)
            return ServerSession(
                id=record.id,
                is_admin=bool(record.is_admin),
                admin_id=record.admin_id,
                flashes={k: list(v) for k, v in (record.flashes or {}).items()},
                expires_at=record.expires_at,
                persisted=True,
            )

    def save(self, session: ServerSession) -> None:
        """Write the session and commit; returns only once the row is durable."""
        with self.guard():
            record = None
            if session.persisted:
                record = self.db.query(SessionRecord).filter(SessionRecord.id == session.id).first()
            if record is None:
                record = SessionRecord(id=session.id, created_at=utcnow())
                self.db.add(record)
                session.issue_cookie = True
                session.clear_cookie = False
            record.is_admin = session.is_admin
            record.admin_id = session.admin_id
            record.flashes = {k: list(v) for k, v in session.flashes.items()}
            record.expires_at = session.expires_at
            self.db.commit()
        session.persisted = True

    def elevate(self, session: ServerSession, admin_id: int) -> None:
        """Bind the session to an admin under a new id; committed before returning."""
        self._delete_row(session)
        session.id = _new_session_id()
        session.expires_at = _new_expiry()
        session.is_admin = True
        session.admin_id = admin_id
        session.persisted = False
        self.save(session)
        logger.info(f"Session elevated for admin {admin_id}")

    def destroy(self, session: ServerSession) -> None:
        """Invalidate the session; destroying an already-invalid session is a no-op."""
        self._delete_row(session)
        session.id = _new_session_id()
        session.expires_at = _new_expiry()
        session.is_admin = False
        session.admin_id = None
        session.flashes = {}
        session.persisted = False
        session.issue_cookie = False
        session.clear_cookie = True

    def revoke_admin(self, admin_id: int) -> int:
        """Drop every session bound to `admin_id` (after a password change)."""
        with self.guard():
            removed = (
                self.db.query(SessionRecord)
                .filter(SessionRecord.admin_id == admin_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        return removed

    def purge_expired(self) -> int:
        with self.guard():
            removed = (
                self.db.query(SessionRecord)
                .filter(SessionRecord.expires_at <= utcnow())
                .delete(synchronize_session=False)
            )
            self.db.commit()
        return removed

    def _delete_row(self, session: ServerSession) -> None:
        if not session.persisted:
            return
        with self.guard():
            self.db.query(SessionRecord).filter(SessionRecord.id == session.id).delete(synchronize_session=False)
            self.db.commit()

    # ---------- flash messages ----------

    def flash(self, session: ServerSession, category: str, message: str) -> None:
        session.flashes.setdefault(category, []).append(message)
        self.save(session)

    def pop_flashes(self, session: ServerSession) -> Dict[str, List[str]]:
        if not session.flashes:
            return {}
        flashes = session.flashes
        session.flashes = {}
        self.save(session)
        return flashes


# ==================== Dependencies ====================

def get_session_manager(db: Session = Depends(get_db)) -> SessionManager:
    return SessionManager(db)


def get_session(request: Request, manager: SessionManager = Depends(get_session_manager)) -> ServerSession:
    """Resolve the browser's session and park it on request.state for the cookie middleware."""
    session = manager.resolve(request.cookies.get(SESSION_COOKIE_NAME))
    request.state.session = session
    return session


__all__ = [
    "ServerSession",
    "SessionManager",
    "get_session_manager",
    "get_session",
]
