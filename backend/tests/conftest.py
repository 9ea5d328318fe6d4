import os
import sys
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ACCESS_SECRET = "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
REFRESH_SECRET = "fedcba9876543210fedcba9876543210fedcba9876543210fedcba9876543210"

os.environ.setdefault("JWT_SECRET", ACCESS_SECRET)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from dreamer_api import models  # noqa: E402,F401
from dreamer_api.config import Settings  # noqa: E402
from dreamer_api.database import Base, get_db  # noqa: E402
from dreamer_api.main import create_app  # noqa: E402
from dreamer_api.services.auth import AuthService  # noqa: E402
from dreamer_api.services.passwords import PasswordHasher  # noqa: E402
from dreamer_api.services.tokens import TokenCodec  # noqa: E402

STRONG_PASSWORD = "Test@1234"


class RecordingEmailSender:
    """Email sender that keeps messages in memory instead of using SMTP."""

    def __init__(self):
        self.sent = []

    def send(self, to: str, template: str, data: dict) -> bool:
        self.sent.append({"to": to, "template": template, "data": data})
        return True

    def last_token(self, template: str) -> str:
        link_key = "verification_link" if template == "verify-email" else "reset_link"
        for message in reversed(self.sent):
            if message["template"] == template:
                return parse_qs(urlparse(message["data"][link_key]).query)["token"][0]
        raise AssertionError(f"No '{template}' email was sent")


def build_settings(**overrides) -> Settings:
    values = {
        "jwt_secret": ACCESS_SECRET,
        "jwt_refresh_secret": REFRESH_SECRET,
        "bcrypt_rounds": 4,
        "frontend_url": "https://dreamerai.test",
        "database_url": "sqlite://",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return build_settings()


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def password_hasher(settings):
    return PasswordHasher(settings.bcrypt_rounds)


@pytest.fixture
def auth_service(db, settings, password_hasher, email_sender):
    return AuthService(
        db=db,
        settings=settings,
        token_codec=TokenCodec(settings),
        password_hasher=password_hasher,
        email_sender=email_sender,
    )


@pytest.fixture
def client(settings, session_factory, email_sender):
    app = create_app(settings)
    app.state.email_sender = email_sender

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)
