import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
# classification tests must never reach the real API
os.environ["OPENAI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.api.deps import get_db
from app.core import security
from app.core.database import Base
from app.main import app
from app.models.enums import Role
from app.services import directory
from app.services.sequences import ensure_sequences


@pytest.fixture
def engine(tmp_path):
    # file database so worker threads in the concurrency tests share it
    eng = create_engine(
        f"sqlite:///{tmp_path / 'helpdesk.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        poolclass=NullPool,
    )

    @event.listens_for(eng, "connect")
    def _enable_foreign_keys(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    db = factory()
    try:
        ensure_sequences(db)
    finally:
        db.close()
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: Role, first_name: str = "Test", password_hash: str = "not-a-hash"):
        counter["n"] += 1
        user = directory.create_user(
            db,
            first_name=first_name,
            last_name=f"User{counter['n']}",
            email=f"user{counter['n']}@school.example",
            password_hash=password_hash,
            role=role,
        )
        return directory.resolve(db, user.id)

    return _make


@pytest.fixture
def student(make_user):
    return make_user(Role.STUDENT, "Sam")


@pytest.fixture
def other_student(make_user):
    return make_user(Role.STUDENT, "Alex")


@pytest.fixture
def teacher(make_user):
    return make_user(Role.TEACHER, "Tara")


@pytest.fixture
def coordinator(make_user):
    return make_user(Role.IT_COORDINATOR, "Casey")


@pytest.fixture
def client(session_factory):
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(identity):
        token = security.create_access_token(identity.id, identity.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers
