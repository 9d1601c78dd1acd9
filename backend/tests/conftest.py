"""
Pytest fixtures for Invoicer backend tests.

Provides an in-memory SQLite database per test, owner identities for tenant
isolation checks, and a FastAPI test client wired to the test database.
"""
import os

os.environ.setdefault("AUTO_CREATE_TABLES", "False")

import uuid
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from invoicer.database import get_db
from invoicer.main import app
from invoicer.models import Base
from invoicer.services import stock_service
from invoicer.utils.auth_internal import create_access_token


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """Test client using the test database."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def owner_a():
    """Owner A (first tenant)."""
    return uuid.uuid4()


@pytest.fixture
def owner_b():
    """Owner B (second tenant)."""
    return uuid.uuid4()


@pytest.fixture
def auth_headers(owner_a):
    return {"Authorization": f"Bearer {create_access_token(owner_a)}"}


@pytest.fixture
def other_auth_headers(owner_b):
    return {"Authorization": f"Bearer {create_access_token(owner_b)}"}


@pytest.fixture
def widget(db_session, owner_a):
    """Widget: price 100.00, 10 on hand."""
    return stock_service.create_stock_item(db_session, owner_a, "Widget", "100.00", 10)


@pytest.fixture
def png_bytes():
    """A small real PNG image."""
    from PIL import Image
    buf = BytesIO()
    Image.new("RGB", (40, 20), (37, 99, 235)).save(buf, format="PNG")
    return buf.getvalue()
