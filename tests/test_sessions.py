"""Tests for session creation, resolution, expiry and logout."""

from datetime import timedelta
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from clubhouse.database import utcnow
from clubhouse.models.session import UserSession
from clubhouse.services.sessions import IdentityKind, SessionService, hash_token


def _expire(db_session: Session, token: str) -> None:
    record = db_session.query(UserSession).filter(UserSession.token_hash == hash_token(token)).one()
    record.expires_at = utcnow() - timedelta(seconds=1)
    db_session.commit()


class TestResolve:
    def test_no_token_is_anonymous(self, db_session: Session):
        assert SessionService().resolve(db_session, None).kind == IdentityKind.ANONYMOUS

    def test_unknown_token_is_anonymous(self, db_session: Session):
        identity = SessionService().resolve(db_session, "not-a-real-token")
        assert identity.kind == IdentityKind.ANONYMOUS
        assert identity.user is None

    def test_valid_token_resolves_user(self, db_session: Session, make_user):
        user = make_user(email="grace@example.com", is_member=True)
        service = SessionService()
        token = service.create_session(db_session, user.id)

        identity = service.resolve(db_session, token)
        assert identity.kind == IdentityKind.VALID
        assert identity.is_authenticated
        assert identity.user.user_id == user.id
        assert identity.user.is_member is True

    def test_resolution_reflects_membership_changes(self, db_session: Session, make_user):
        user = make_user()
        service = SessionService()
        token = service.create_session(db_session, user.id)
        assert service.resolve(db_session, token).user.is_member is False

        user.is_member = True
        db_session.commit()
        assert service.resolve(db_session, token).user.is_member is True

    def test_expired_token_is_anonymous(self, db_session: Session, make_user):
        user = make_user()
        service = SessionService()
        token = service.create_session(db_session, user.id)
        _expire(db_session, token)

        identity = service.resolve(db_session, token)
        assert identity.kind == IdentityKind.ANONYMOUS
        assert identity.user is None

    def test_inspect_reports_expired_and_cleans_up(self, db_session: Session, make_user):
        user = make_user()
        service = SessionService()
        token = service.create_session(db_session, user.id)
        _expire(db_session, token)

        assert service.inspect(db_session, token).kind == IdentityKind.EXPIRED
        assert db_session.query(UserSession).count() == 0
        assert service.inspect(db_session, token).kind == IdentityKind.ANONYMOUS

    def test_orphaned_session_is_anonymous(self, db_session: Session, make_user):
        user = make_user()
        service = SessionService()
        token = service.create_session(db_session, user.id)

        db_session.delete(user)
        db_session.commit()

        assert db_session.query(UserSession).count() == 1
        assert service.resolve(db_session, token).kind == IdentityKind.ANONYMOUS


class TestInvalidate:
    def test_invalidate_removes_only_that_session(self, db_session: Session, make_user):
        user = make_user()
        service = SessionService()
        first = service.create_session(db_session, user.id)
        second = service.create_session(db_session, user.id)

        service.invalidate(db_session, first)

        assert service.resolve(db_session, first).kind == IdentityKind.ANONYMOUS
        assert service.resolve(db_session, second).kind == IdentityKind.VALID

    def test_invalidate_swallows_storage_errors(self):
        db = MagicMock()
        db.query.side_effect = OperationalError("DELETE FROM user_session", {}, Exception("database is locked"))

        SessionService().invalidate(db, "some-token")

        db.rollback.assert_called_once()

    def test_invalidate_without_token_is_noop(self):
        db = MagicMock()
        SessionService().invalidate(db, None)
        db.query.assert_not_called()


class TestPurgeExpired:
    def test_purge_removes_only_expired(self, db_session: Session, make_user):
        user = make_user()
        service = SessionService()
        stale = service.create_session(db_session, user.id)
        fresh = service.create_session(db_session, user.id)
        _expire(db_session, stale)

        assert service.purge_expired(db_session) == 1
        assert service.resolve(db_session, fresh).kind == IdentityKind.VALID


class TestSessionCookie:
    def test_expired_cookie_redirects_to_login(self, client: TestClient, db_session: Session, make_user, login_as):
        token = login_as(make_user())
        _expire(db_session, token)

        response = client.get("/profile", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/login"

    def test_bearer_token_is_accepted(self, client: TestClient, db_session: Session, make_user, author, make_message):
        make_message(author)
        member = make_user(email="member@example.com", is_member=True)
        token = SessionService().create_session(db_session, member.id)

        response = client.get("/api/v1/messages/", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["items"][0]["author_email"] == "ada@example.com"
