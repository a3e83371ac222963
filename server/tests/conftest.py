from __future__ import annotations

import os
from collections.abc import Generator
from itertools import count

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ryd.auth.security import create_access_token, hash_password
from ryd.core.db import Base, engine_options, get_db
from ryd.main import app
from ryd.models.user import User

SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(SQLALCHEMY_TEST_URL, poolclass=StaticPool, **engine_options(SQLALCHEMY_TEST_URL))
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

DEFAULT_PASSWORD = "Secret123!"

_email_counter = count(1)


def override_get_db() -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def session_token(user: User) -> str:
    return create_access_token(user_id=user.id, role=user.role, status=user.status, email=user.email)


@pytest.fixture()
def authorize(client: TestClient):
    """Sign ``client`` in as ``user`` with a real session token."""

    def _apply(user: User) -> str:
        token = session_token(user)
        client.headers["Authorization"] = f"Bearer {token}"
        return token

    yield _apply
    client.headers.pop("Authorization", None)


@pytest.fixture()
def make_user(db_session: Session):
    def _make(
        role: str = "VOLUNTEER",
        status: str = "ACTIVE",
        *,
        email: str | None = None,
        first_name: str = "Selam",
        last_name: str | None = None,
        password: str | None = None,
    ) -> User:
        user = User(
            email=email or f"user{next(_email_counter)}@example.com",
            first_name=first_name,
            last_name=last_name or role.title().replace("_", " "),
            hashed_password=hash_password(password) if password else "hash",
            role=role,
            status=status,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def super_admin_user(make_user) -> User:
    return make_user("SUPER_ADMIN", email="root@example.com", first_name="Hanna")


@pytest.fixture()
def admin_user(make_user) -> User:
    return make_user("ADMIN", email="admin@example.com", first_name="Dawit")


@pytest.fixture()
def staff_user(make_user) -> User:
    return make_user("STAFF", email="staff@example.com", first_name="Meron")


@pytest.fixture()
def volunteer_user(make_user) -> User:
    return make_user("VOLUNTEER", email="volunteer@example.com", first_name="Yonas")


@pytest.fixture()
def pending_user(make_user) -> User:
    return make_user("VOLUNTEER", "PENDING", email="pending@example.com", first_name="Liya")
