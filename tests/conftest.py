"""Pytest configuration and shared fixtures.

Every test gets its own in-memory SQLite database with the full schema.
API tests share the same session with the application through dependency
overrides, so records created by fixtures are visible to the endpoints.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mandates.core.config import Settings, get_settings
from mandates.core.revocation import RevocationService
from mandates.db.session import init_db
from mandates.services import LocalDocumentStorage
from tests.factories import create_business_profile, create_decision, create_user
from tests.fakes import FakeSignatureVerifier


@pytest.fixture
def engine():
    """Fresh in-memory database with all tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        create_tables_on_startup=False,
        document_storage_dir=str(tmp_path / "documents"),
        document_base_url="http://testserver/documents",
        max_document_size=1024,
    )


@pytest.fixture
def storage(settings):
    return LocalDocumentStorage(settings.document_storage_dir, settings.document_base_url)


@pytest.fixture
def verifier():
    return FakeSignatureVerifier()


# ---------------------------------------------------------------------------
# Seed data (committed so that API error rollbacks keep it)
# ---------------------------------------------------------------------------


@pytest.fixture
def profile(db_session):
    profile = create_business_profile(db_session, name="Kowalski Sp. z o.o.")
    db_session.commit()
    return profile


@pytest.fixture
def requester(db_session, profile):
    user = create_user(db_session, profile=profile, name="Requester")
    db_session.commit()
    return user


@pytest.fixture
def approver_a(db_session, profile):
    user = create_user(db_session, profile=profile, name="Shareholder A")
    db_session.commit()
    return user


@pytest.fixture
def approver_b(db_session, profile):
    user = create_user(db_session, profile=profile, name="Shareholder B")
    db_session.commit()
    return user


@pytest.fixture
def decision(db_session, profile, requester):
    decision = create_decision(db_session, profile=profile, created_by=requester)
    db_session.commit()
    return decision


@pytest.fixture
def service(db_session, profile, storage, verifier, settings):
    return RevocationService(
        db_session,
        profile.id,
        storage=storage,
        verifier=verifier,
        settings=settings,
    )


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


@pytest.fixture
def client(db_session, storage, verifier, settings):
    """Test client bound to the test session.

    The lifespan is not entered, so no tables are created on the
    configured database.
    """
    from mandates.api.main import app
    from mandates.api.deps import get_db, get_document_storage, get_signature_verifier

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_document_storage] = lambda: storage
    app.dependency_overrides[get_signature_verifier] = lambda: verifier

    yield TestClient(app)

    app.dependency_overrides.clear()
