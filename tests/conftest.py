import itertools
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from store_ratings.config import Settings
from store_ratings.db import Base, create_db_engine, get_db, make_session_factory
from store_ratings.main import create_app
from store_ratings.models import Role, Store


@pytest.fixture(scope="session")
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret="test-secret",
        create_schema=False,
        log_level="WARNING",
    )


@pytest.fixture(scope="session")
def app(settings):
    return create_app(settings)


@pytest.fixture
def auth_service(app):
    return app.state.auth


@pytest.fixture(scope="function")
def db_session() -> Generator:
    # Use in-memory SQLite with a single connection; foreign keys enforced
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    TestingSessionLocal = make_session_factory(engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture(scope="function")
def client(app, db_session):
    # Override dependency to use the same session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session, auth_service):
    counter = itertools.count(1)

    def _make(role=Role.NORMAL_USER, name=None, email=None, password="Passw0rd!", address="42 Test Street"):
        n = next(counter)
        return auth_service.create_account(
            db_session,
            name or f"Test User Number {n:04d} Long",
            email or f"user{n}@example.com",
            password,
            address,
            role=role,
        )

    return _make


@pytest.fixture
def make_store(db_session):
    counter = itertools.count(1)

    def _make(name=None, owner=None, email=None, address="1 Market Square"):
        n = next(counter)
        store = Store(
            name=name or f"Corner Store Number {n:04d}",
            email=email,
            address=address,
            owner_id=owner.id if owner is not None else None,
        )
        db_session.add(store)
        db_session.commit()
        db_session.refresh(store)
        return store

    return _make


@pytest.fixture
def auth_headers(auth_service):
    def _headers(user):
        return {"Authorization": f"Bearer {auth_service.token_for(user)}"}

    return _headers
