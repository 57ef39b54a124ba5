"""Tests for signup, login and logout."""

import bcrypt
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from clubhouse.config import get_settings
from clubhouse.models.session import UserSession
from clubhouse.models.user import User
from clubhouse.services.auth import AuthService

TEST_PASSWORD = "Passw0rd"


def _signup_data(**overrides) -> dict:
    data = {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@x.com",
        "password": "Passw0rd",
        "confirm_password": "Passw0rd",
    }
    data.update(overrides)
    return data


class TestSignupService:
    """Tests for AuthService.signup rules."""

    def test_signup_then_login(self, db_session: Session):
        """Ada signs up, logs in with the right password and is rejected with the wrong one."""
        auth = AuthService()
        result = auth.signup(db_session, "Ada", "Lovelace", "ada@x.com", "Passw0rd", "Passw0rd")
        assert result.success

        ok = auth.authenticate(db_session, "ada@x.com", "Passw0rd")
        assert ok.status == "authenticated"
        assert ok.user.email == "ada@x.com"

        bad = auth.authenticate(db_session, "ada@x.com", "wrong")
        assert bad.status == "rejected"
        assert bad.reason == "unknown-credential"

    def test_new_user_is_not_member(self, db_session: Session):
        result = AuthService().signup(db_session, "Ada", "Lovelace", "ada@x.com", "Passw0rd", "Passw0rd")
        user = db_session.get(User, result.user_id)
        assert user.is_member is False
        assert user.is_admin is False

    def test_password_is_hashed(self, db_session: Session):
        result = AuthService().signup(db_session, "Ada", "Lovelace", "ada@x.com", "Passw0rd", "Passw0rd")
        user = db_session.get(User, result.user_id)
        assert user.password_hash != "Passw0rd"
        assert bcrypt.checkpw(b"Passw0rd", user.password_hash.encode())

    def test_email_is_normalized(self, db_session: Session):
        result = AuthService().signup(db_session, "Ada", "Lovelace", "  Ada@X.COM ", "Passw0rd", "Passw0rd")
        assert result.email == "ada@x.com"
        assert AuthService().authenticate(db_session, "ADA@x.com", "Passw0rd").success

    def test_duplicate_email_is_email_taken(self, db_session: Session):
        auth = AuthService()
        assert auth.signup(db_session, "Ada", "Lovelace", "dup@x.com", "Passw0rd", "Passw0rd").success

        result = auth.signup(db_session, "Eve", "Imposter", "DUP@x.com", "Passw0rd", "Passw0rd")
        assert not result.success
        assert result.reason == "email-taken"
        assert db_session.query(User).count() == 1

    def test_first_error_wins(self, db_session: Session):
        """Every field is invalid; only the first name error is reported."""
        result = AuthService().signup(db_session, "A", "", "not-an-email", "short", "different")
        assert not result.success
        assert result.reason == "validation"
        assert result.error == "First name must be between 2 and 100 characters"

    def test_first_error_skips_valid_fields(self, db_session: Session):
        result = AuthService().signup(db_session, "Ada", "Lovelace", "not-an-email", "short", "different")
        assert result.error == "Must be a valid email address"

    def test_name_characters(self, db_session: Session):
        result = AuthService().signup(db_session, "Ada", "L0velace", "ada@x.com", "Passw0rd", "Passw0rd")
        assert result.error == "Last name can only contain letters, spaces, hyphens, and apostrophes"

    def test_names_allow_hyphen_and_apostrophe(self, db_session: Session):
        result = AuthService().signup(db_session, "Mary-Jane", "O'Neil", "mj@x.com", "Passw0rd", "Passw0rd")
        assert result.success

    def test_password_complexity(self, db_session: Session):
        result = AuthService().signup(db_session, "Ada", "Lovelace", "ada@x.com", "password1", "password1")
        assert result.error == (
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )

    def test_password_digit_must_be_ascii(self, db_session: Session):
        """Arabic-Indic three does not count as a number."""
        result = AuthService().signup(db_session, "Ada", "Lovelace", "ada@x.com", "Password٣", "Password٣")
        assert result.error == (
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )

    def test_password_length(self, db_session: Session):
        result = AuthService().signup(db_session, "Ada", "Lovelace", "ada@x.com", "Pa1", "Pa1")
        assert result.error == "Password must be at least 6 characters long"

    def test_confirm_password_mismatch(self, db_session: Session):
        result = AuthService().signup(db_session, "Ada", "Lovelace", "ada@x.com", "Passw0rd", "Passw0rd!")
        assert result.error == "Passwords do not match"
        assert db_session.query(User).count() == 0

    def test_confirm_password_required(self, db_session: Session):
        result = AuthService().signup(db_session, "Ada", "Lovelace", "ada@x.com", "Passw0rd", "")
        assert result.error == "Please confirm your password"

    def test_admin_flag_ignored_by_default(self, db_session: Session):
        result = AuthService().signup(db_session, "Ada", "Lovelace", "ada@x.com", "Passw0rd", "Passw0rd", True)
        assert db_session.get(User, result.user_id).is_admin is False

    def test_admin_flag_honoured_when_enabled(self, db_session: Session, monkeypatch):
        monkeypatch.setattr(get_settings(), "ALLOW_ADMIN_SIGNUP", True)
        result = AuthService().signup(db_session, "Ada", "Lovelace", "ada@x.com", "Passw0rd", "Passw0rd", True)
        assert db_session.get(User, result.user_id).is_admin is True


class TestAuthenticate:
    """Tests for AuthService.authenticate."""

    def test_success_creates_exactly_one_session(self, db_session: Session, make_user):
        user = make_user(email="grace@example.com")
        result = AuthService().authenticate(db_session, "grace@example.com", TEST_PASSWORD)
        assert result.success
        assert result.token
        sessions = db_session.query(UserSession).all()
        assert len(sessions) == 1
        assert sessions[0].user_id == user.id
        assert sessions[0].token_hash != result.token

    def test_session_expires_in_thirty_days(self, db_session: Session, make_user):
        make_user(email="grace@example.com")
        AuthService().authenticate(db_session, "grace@example.com", TEST_PASSWORD)
        record = db_session.query(UserSession).one()
        assert (record.expires_at - record.created_at).days == 30

    def test_wrong_password_creates_no_session(self, db_session: Session, make_user):
        make_user(email="grace@example.com")
        result = AuthService().authenticate(db_session, "grace@example.com", "Wrong0ne")
        assert not result.success
        assert result.token is None
        assert db_session.query(UserSession).count() == 0

    def test_unknown_email_and_wrong_password_look_the_same(self, db_session: Session, make_user):
        make_user(email="grace@example.com")
        auth = AuthService()
        unknown = auth.authenticate(db_session, "nobody@example.com", TEST_PASSWORD)
        wrong = auth.authenticate(db_session, "grace@example.com", "Wrong0ne")
        assert (unknown.error, unknown.reason) == (wrong.error, wrong.reason)

    def test_concurrent_sessions_allowed(self, db_session: Session, make_user):
        make_user(email="grace@example.com")
        auth = AuthService()
        first = auth.authenticate(db_session, "grace@example.com", TEST_PASSWORD)
        second = auth.authenticate(db_session, "grace@example.com", TEST_PASSWORD)
        assert first.token != second.token
        assert db_session.query(UserSession).count() == 2


class TestSignupWeb:
    """Tests for the signup pages."""

    def test_signup_page_renders(self, client: TestClient):
        response = client.get("/signup")
        assert response.status_code == 200
        assert "Sign up" in response.text
        assert "Make me an admin" not in response.text

    def test_signup_redirects_to_login(self, client: TestClient, db_session: Session):
        response = client.post("/signup", data=_signup_data(), follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/login"
        assert db_session.query(User).filter(User.email == "ada@x.com").count() == 1

    def test_signup_error_echoes_input_but_not_password(self, client: TestClient):
        response = client.post("/signup", data=_signup_data(password="secretPass9", confirm_password="nope"))
        assert response.status_code == 200
        assert "Passwords do not match" in response.text
        assert 'value="Lovelace"' in response.text
        assert "secretPass9" not in response.text

    def test_signup_duplicate(self, client: TestClient, make_user):
        make_user(email="ada@x.com")
        response = client.post("/signup", data=_signup_data(email="ADA@x.com"))
        assert response.status_code == 200
        assert "Email already registered" in response.text

    def test_signup_page_redirects_authenticated(self, client: TestClient, make_user, login_as):
        login_as(make_user())
        response = client.get("/signup", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/"


class TestLoginWeb:
    """Tests for the login and logout pages."""

    def test_login_sets_cookie(self, client: TestClient, make_user):
        make_user(email="grace@example.com")
        response = client.post(
            "/login",
            data={"email": "grace@example.com", "password": TEST_PASSWORD},
            follow_redirects=False,
        )
        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert "club_session" in response.cookies

    def test_login_failure_is_generic(self, client: TestClient, make_user):
        make_user(email="grace@example.com")
        wrong = client.post("/login", data={"email": "grace@example.com", "password": "Wrong0ne"})
        unknown = client.post("/login", data={"email": "nobody@example.com", "password": "Wrong0ne"})
        assert wrong.status_code == unknown.status_code == 200
        assert "Invalid email or password" in wrong.text
        assert "Invalid email or password" in unknown.text
        assert "club_session" not in wrong.cookies

    def test_login_validation_first_error(self, client: TestClient):
        response = client.post("/login", data={"email": "", "password": ""})
        assert "Email is required" in response.text
        assert "Password is required" not in response.text

    def test_login_then_home_shows_user(self, client: TestClient, make_user):
        make_user(email="grace@example.com", first_name="Grace")
        client.post("/login", data={"email": "grace@example.com", "password": TEST_PASSWORD})
        response = client.get("/")
        assert response.status_code == 200
        assert "Hello, Grace" in response.text

    def test_login_page_redirects_authenticated(self, client: TestClient, make_user, login_as):
        login_as(make_user())
        response = client.get("/login", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/"

    def test_logout_removes_session(self, client: TestClient, db_session: Session, make_user, login_as):
        login_as(make_user())
        assert db_session.query(UserSession).count() == 1

        response = client.get("/logout", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert db_session.query(UserSession).count() == 0

        client.cookies.clear()
        assert client.get("/profile", follow_redirects=False).status_code == 302

    def test_old_token_is_anonymous_after_logout(self, client: TestClient, make_user, login_as):
        token = login_as(make_user())
        client.get("/logout")
        client.cookies.set("club_session", token)
        response = client.get("/profile", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/login"

    def test_logout_without_session(self, client: TestClient):
        response = client.get("/logout", follow_redirects=False)
        assert response.status_code == 302


class TestRateLimit:
    """Login attempts are throttled per client."""

    def test_login_rate_limited(self, client: TestClient):
        from clubhouse.rate_limit import limiter

        limiter.reset()
        limiter.enabled = True
        try:
            statuses = [
                client.post("/login", data={"email": "nobody@example.com", "password": "x"}).status_code
                for _ in range(11)
            ]
        finally:
            limiter.enabled = False
            limiter.reset()
        assert statuses[:10] == [200] * 10
        assert statuses[10] == 429
