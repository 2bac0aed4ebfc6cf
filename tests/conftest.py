# tests/conftest.py
import os

# Settings are read at import time, so the test environment goes first.
os.environ["ENV"] = "local"
os.environ["DATABASE_URL_LOCAL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
for key in (
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "DEEPL_API_KEY",
    "GROQ_API_KEY",
    "IDENTITY_URL",
    "IDENTITY_SERVICE_KEY",
):
    os.environ.pop(key, None)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.testclient import TestClient

from app.main import app
from app.api import deps
from app.db.session import get_db
from app.models import Base
from app.services.identity.client import IdentityAdminClient
from app.services.translate.service import TranslationService


# --- In-memory test database ---
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


# --- Mock collaborators ---
def override_get_payment_provider_optional():
    return None


def override_get_translator():
    return TranslationService([])


def override_get_identity_admin():
    return IdentityAdminClient(base_url=None, service_key=None)


@pytest.fixture(scope="function")
def client(db):
    """
    TestClient backed by the in-memory database. Payments, translation and
    the identity admin API are unconfigured unless a test overrides them.
    """

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_payment_provider_optional] = override_get_payment_provider_optional
    app.dependency_overrides[deps.get_translator] = override_get_translator
    app.dependency_overrides[deps.get_identity_admin] = override_get_identity_admin

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
