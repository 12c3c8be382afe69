"""Shared fixtures: an in-memory database, a recording notifier and an app client."""
import os

os.environ.setdefault("SECRET_KEY", "testing_secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver"]')

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from authcore import models
from authcore.core.security import TokenIssuer, get_token_issuer
from authcore.database import Base, get_db
from authcore.main import app
from authcore.service import AuthService
from authcore.utils import get_notifier

SECRET = "testing_secret"
PASSWORD = "secret123"


class RecordingNotifier:
    """Keeps every code it is asked to deliver; can be told to fail."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send_otp(self, address, code):
        if self.fail:
            return False
        self.sent.append((address, code))
        return True

    def last_code(self, address):
        for sent_to, code in reversed(self.sent):
            if sent_to == address:
                return code
        return None


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def tokens():
    return TokenIssuer(SECRET)


@pytest.fixture
def service(db, notifier, tokens):
    return AuthService(db, notifier, tokens)


@pytest.fixture
def register_payload():
    return {
        "name": "Alice",
        "email": "a@x.com",
        "password": PASSWORD,
        "password_confirmation": PASSWORD,
    }


@pytest.fixture
def verified_user(service, db, notifier, register_payload):
    """A registered user who has completed OTP verification."""
    service.register(register_payload).unwrap()
    code = notifier.last_code("a@x.com")
    service.verify_otp({"email": "a@x.com", "otp": code}).unwrap()
    db.expire_all()
    return db.query(models.User).filter_by(email="a@x.com").one()


@pytest.fixture
def client(session_factory, notifier, tokens):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_token_issuer] = lambda: tokens
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
