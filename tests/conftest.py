"""Pytest configuration and fixtures."""

from concurrent.futures import Executor, Future
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import account_service.models  # noqa: F401
from account_service.database import Base, get_db
from account_service.services.jwt import TokenSigner
from account_service.services.mail import VerificationMailQueue
from account_service.services.oauth import ExternalProfile, OAuthIdentityLinker
from account_service.services.passwords import PasswordHasher
from account_service.services.sessions import SessionManager
from account_service.services.statistics import LoginStatsRecorder
from account_service.services.user_store import UserStore
from account_service.services.users import UsersService

TEST_SECRET = "test-secret-key"


class InlineExecutor(Executor):
    """Runs submitted work immediately so background effects are visible to assertions."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:
            future.set_exception(e)
        return future


class FakeOAuthProvider:
    """Stands in for Google: every code maps to ``profile``."""

    name = "google"

    def __init__(self) -> None:
        self.profile = ExternalProfile(provider_id="g-123", email="oauth@example.com", username="OAuth User")
        self.codes: list[str] = []

    def authorization_url(self, state: str) -> str:
        return f"https://accounts.example.com/authorize?state={state}"

    def exchange_code(self, code: str) -> ExternalProfile:
        self.codes.append(code)
        return self.profile


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="session_factory")
def session_factory_fixture(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(name="db_session")
def db_session_fixture(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(name="store")
def store_fixture(db_session: Session) -> UserStore:
    return UserStore(db_session)


@pytest.fixture(name="hasher")
def hasher_fixture() -> PasswordHasher:
    # Minimum bcrypt cost keeps the suite fast.
    return PasswordHasher(rounds=4)


@pytest.fixture(name="signer")
def signer_fixture() -> TokenSigner:
    return TokenSigner(secret_key=TEST_SECRET, access_ttl=timedelta(hours=1), refresh_ttl=timedelta(days=7))


@pytest.fixture(name="recorder")
def recorder_fixture(session_factory) -> LoginStatsRecorder:
    return LoginStatsRecorder(session_factory, InlineExecutor())


@pytest.fixture(name="sessions")
def sessions_fixture(store, hasher, signer, recorder) -> SessionManager:
    return SessionManager(store, hasher, signer, recorder)


@pytest.fixture(name="linker")
def linker_fixture(store, sessions) -> OAuthIdentityLinker:
    return OAuthIdentityLinker(store, sessions, "google")


@pytest.fixture(name="mail_queue")
def mail_queue_fixture() -> MagicMock:
    queue = MagicMock(spec=VerificationMailQueue)
    queue.enqueue.return_value = "job-1"
    return queue


@pytest.fixture(name="users_service")
def users_service_fixture(store, hasher, mail_queue) -> UsersService:
    return UsersService(store, hasher, mail_queue)


@pytest.fixture(name="oauth_provider")
def oauth_provider_fixture() -> FakeOAuthProvider:
    return FakeOAuthProvider()


@pytest.fixture(name="client")
def client_fixture(db_session: Session, hasher, signer, recorder, mail_queue, oauth_provider):
    """Create a test client with overridden dependencies and disabled rate limiting."""
    from account_service.rate_limit import limiter
    from account_service.services.jwt import get_token_signer
    from account_service.services.mail import get_mail_queue
    from account_service.services.oauth import get_google_provider
    from account_service.services.passwords import get_password_hasher
    from account_service.services.statistics import get_login_stats_recorder
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    app.dependency_overrides[get_token_signer] = lambda: signer
    app.dependency_overrides[get_login_stats_recorder] = lambda: recorder
    app.dependency_overrides[get_mail_queue] = lambda: mail_queue
    app.dependency_overrides[get_google_provider] = lambda: oauth_provider
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="test_user")
def test_user_fixture(store: UserStore, hasher: PasswordHasher):
    """Create a verified local user and return its data."""
    user = store.create(
        email="a@x.com",
        username="alice",
        password_hash=hasher.hash("Secret1!"),
        is_verified=True,
    )
    return {"user_id": user.id, "email": "a@x.com", "username": "alice", "password": "Secret1!"}
