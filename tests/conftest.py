# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite://")
# Minimum bcrypt cost keeps the suite fast.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from playsphere.core.security import create_access_token
from playsphere.db.session import Base
from playsphere.db.session import get_db as app_get_session
from playsphere.main import app as fastapi_app
from playsphere.models import Game, Group, User
from playsphere.services.storage import Storage

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "secret-pass"

_USERNAME_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    # Commits inside the code under test release savepoints; the outer
    # transaction is rolled back when the test ends.
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits leaked through.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def storage(db_session: Session) -> Storage:
    return Storage(db_session)


@pytest.fixture()
def make_user(storage: Storage) -> Callable[..., User]:
    """Return a factory creating persisted users with sensible defaults."""

    def _make_user(username: str | None = None, **overrides: Any) -> User:
        fields: dict[str, Any] = {
            "username": username or f"player{next(_USERNAME_COUNTER)}",
            "password": TEST_PASSWORD,
            "language": "English",
            "region": "NA",
            "current_game": "Valorant",
            "current_game_id": "player#0001",
            "games_played": ["Valorant"],
        }
        fields.update(overrides)
        return storage.create_user(**fields)

    return _make_user


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create and return the primary test user."""
    return make_user("alice")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create and return a second user."""
    return make_user("bob", region="EU", language="German", games_played=["Dota 2"])


@pytest.fixture()
def third_user(make_user: Callable[..., User]) -> User:
    """Create and return a third user."""
    return make_user("carol")


@pytest.fixture()
def admin_user(make_user: Callable[..., User]) -> User:
    """Create and return an administrator."""
    return make_user("admin", is_admin=True)


def token_for(user: User) -> str:
    return create_access_token(user.id)


def headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return headers_for(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return headers_for(other_user)


@pytest.fixture()
def admin_auth_token(admin_user: User) -> dict[str, str]:
    """Return authorization headers for the administrator."""
    return headers_for(admin_user)


@pytest.fixture()
def group(storage: Storage, test_user: User, other_user: User) -> Group:
    """A group owned by ``test_user`` with ``other_user`` as a member."""
    group = storage.create_group("Raid Night", test_user.id)
    storage.add_group_member(group.id, other_user.id, test_user.id)
    return group


@pytest.fixture()
def game(storage: Storage) -> Game:
    """A catalog entry."""
    return storage.create_game(
        name="Valorant",
        categories=["Shooter", "Tactical"],
        platforms=["PC"],
        contact="support@riot.example",
        downloads=1_000_000,
    )
