"""
Unit tests for the server-side session manager
"""
from datetime import timedelta

from jose import jwt

from app.sessions import ServerSession, SessionManager
from domain.models import SessionRecord, utcnow


def _rows(db_session):
    db_session.expire_all()
    return db_session.query(SessionRecord).all()


class TestResolve:

    def test_no_cookie_gives_anonymous_unsaved_session(self, db_session):
        session = SessionManager(db_session).resolve(None)

        assert session.is_admin is False
        assert session.persisted is False
        assert _rows(db_session) == []

    def test_tampered_cookie_is_ignored(self, db_session):
        manager = SessionManager(db_session)
        session = ServerSession()
        manager.elevate(session, admin_id=1)
        forged = jwt.encode({"sid": session.id}, "some-other-key", algorithm="HS256")

        resolved = manager.resolve(forged)

        assert resolved.is_admin is False
        assert resolved.id != session.id

    def test_round_trip_through_cookie(self, db_session):
        manager = SessionManager(db_session)
        session = ServerSession()
        manager.elevate(session, admin_id=7)

        resolved = manager.resolve(SessionManager.encode_cookie(session))

        assert resolved.id == session.id
        assert resolved.is_admin is True
        assert resolved.admin_id == 7

    def test_expired_row_is_dropped(self, db_session):
        manager = SessionManager(db_session)
        session = ServerSession()
        manager.flash(session, "success", "hi")
        cookie = SessionManager.encode_cookie(session)
        record = db_session.query(SessionRecord).filter(SessionRecord.id == session.id).one()
        record.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        resolved = manager.resolve(cookie)

        assert resolved.id != session.id
        assert resolved.flashes == {}
        assert resolved.clear_cookie is True
        assert _rows(db_session) == []


class TestLifecycle:

    def test_elevate_rotates_id_and_persists(self, db_session):
        manager = SessionManager(db_session)
        session = ServerSession()
        manager.flash(session, "error", "Please log in to view this resource")
        old_id = session.id

        manager.elevate(session, admin_id=3)

        rows = _rows(db_session)
        assert session.id != old_id
        assert [r.id for r in rows] == [session.id]
        assert rows[0].is_admin is True
        assert rows[0].admin_id == 3
        assert session.issue_cookie is True

    def test_destroy_is_idempotent(self, db_session):
        manager = SessionManager(db_session)
        session = ServerSession()
        manager.elevate(session, admin_id=3)

        manager.destroy(session)
        manager.destroy(session)

        assert session.is_admin is False
        assert session.admin_id is None
        assert session.clear_cookie is True
        assert _rows(db_session) == []

    def test_flashes_are_read_once(self, db_session):
        manager = SessionManager(db_session)
        session = ServerSession()
        manager.flash(session, "success", "Question added successfully")
        manager.flash(session, "success", "Another")

        again = manager.resolve(SessionManager.encode_cookie(session))
        assert manager.pop_flashes(again) == {"success": ["Question added successfully", "Another"]}

        third = manager.resolve(SessionManager.encode_cookie(session))
        assert manager.pop_flashes(third) == {}

    def test_revoke_admin_and_purge(self, db_session):
        manager = SessionManager(db_session)
        first, second, other = ServerSession(), ServerSession(), ServerSession()
        manager.elevate(first, admin_id=1)
        manager.elevate(second, admin_id=1)
        manager.elevate(other, admin_id=2)

        assert manager.revoke_admin(1) == 2
        assert [r.admin_id for r in _rows(db_session)] == [2]

        record = db_session.query(SessionRecord).one()
        record.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()
        assert manager.purge_expired() == 1
        assert _rows(db_session) == []
