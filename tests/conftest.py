"""Pytest configuration and fixtures."""

import os

# Keep the app's own engine off disk before anything imports config
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["MEMBERSHIP_PASSCODE"] = "open-sesame"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from clubhouse.database import Base, enable_sqlite_foreign_keys, get_db
from clubhouse.models.message import Message
from clubhouse.models.session import UserSession  # noqa: F401
from clubhouse.models.user import User
from clubhouse.services.auth import hash_password
from clubhouse.services.sessions import SessionService

TEST_PASSWORD = "Passw0rd"
PASSCODE = "open-sesame"


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="client")
def client_fixture(db_session: Session):
    """Create a test client with overridden DB dependency and disabled rate limiting."""
    from clubhouse.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="make_user")
def make_user_fixture(db_session: Session):
    """Factory inserting a user directly, bypassing signup validation."""
    password_hash = hash_password(TEST_PASSWORD)

    def _make_user(
        email: str = "user@example.com",
        first_name: str = "Grace",
        last_name: str = "Hopper",
        is_member: bool = False,
        is_admin: bool = False,
    ) -> User:
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=password_hash,
            is_member=is_member,
            is_admin=is_admin,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture(name="make_message")
def make_message_fixture(db_session: Session):
    def _make_message(user: User, title: str = "Hello club", text: str = "This is a perfectly fine message.") -> Message:
        message = Message(title=title, text=text, user_id=user.id)
        db_session.add(message)
        db_session.commit()
        db_session.refresh(message)
        return message

    return _make_message


@pytest.fixture(name="login_as")
def login_as_fixture(client: TestClient, db_session: Session):
    """Open a session for a user and put its token in the client's cookie jar."""

    def _login_as(user: User) -> str:
        token = SessionService().create_session(db_session, user.id)
        client.cookies.set("club_session", token)
        return token

    return _login_as


@pytest.fixture(name="author")
def author_fixture(make_user):
    """A member who has posted on the board."""
    return make_user(email="ada@example.com", first_name="Ada", last_name="Lovelace", is_member=True)
