# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import datetime, timedelta
from itertools import count
from typing import Any

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SWEEPER_ENABLED", "false")
# Cheapest argon2id parameters keep password hashing fast under test.
os.environ.setdefault("PASSWORD_OPSLIMIT", "1")
os.environ.setdefault("PASSWORD_MEMLIMIT", "8192")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from buzzbyte_stage.api.v1.dependencies import get_storage
from buzzbyte_stage.core.errors import AssetStorageError
from buzzbyte_stage.core.security import create_access_token, hash_password
from buzzbyte_stage.db.session import Base
from buzzbyte_stage.db.session import get_db as app_get_session
from buzzbyte_stage.db.time import utcnow
from buzzbyte_stage.main import app as fastapi_app
from buzzbyte_stage.models import Post, Tag, User
from buzzbyte_stage.services.tag_service import slugify, tag_name_key

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "password123"

_USER_COUNTER = count(1)


class RecordingStorage:
    """In-memory asset backend that remembers every call."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_deletes = False
        self._counter = count(1)

    def save(self, data: bytes, *, prefix: str, suffix: str, content_type: str) -> str:
        key = f"{prefix}/asset-{next(self._counter)}{suffix}"
        self.objects[key] = data
        return key

    def delete(self, key: str) -> None:
        if self.fail_deletes:
            raise AssetStorageError(f"storage offline while deleting {key}")
        self.deleted.append(key)
        self.objects.pop(key, None)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite defers BEGIN, which breaks SAVEPOINT; emit it ourselves.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

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
    SessionLocal = sessionmaker(
        bind=connection,
        autoflush=False,
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

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def storage() -> RecordingStorage:
    return RecordingStorage()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI, db_session: Session, storage: RecordingStorage
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_storage, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory persisting users with the shared test password."""

    def _make_user(name: str | None = None, email: str | None = None) -> User:
        n = next(_USER_COUNTER)
        user = User(
            name=name or f"User {n}",
            email=(email or f"user{n}@example.com").lower(),
            password_hash=hash_password(TEST_PASSWORD),
        )
        db_session.add(user)
        db_session.flush()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create and return the primary test user."""
    return make_user("Test User", "test@example.com")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create and return a second persisted user."""
    return make_user("Other User", "other@example.com")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    token = create_access_token(test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    token = create_access_token(other_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_tag(db_session: Session) -> Callable[[str], Tag]:
    def _make_tag(name: str) -> Tag:
        tag = Tag(name=name, name_key=tag_name_key(name), slug=slugify(name))
        db_session.add(tag)
        db_session.flush()
        db_session.refresh(tag)
        return tag

    return _make_tag


@pytest.fixture()
def tag(make_tag: Callable[[str], Tag]) -> Tag:
    return make_tag("Python")


@pytest.fixture()
def make_post(db_session: Session, test_user: User, tag: Tag) -> Callable[..., Post]:
    """Return a factory for posts of a given age.

    ``age`` is how long ago the post was created; 24 hours or more means the
    post is already expired.
    """

    def _make_post(
        *,
        author: User | None = None,
        tags: list[Tag] | None = None,
        age: timedelta = timedelta(0),
        title: str = "A fleeting thought",
        body: str = "This post will not last the day.",
        cover_image_key: str | None = None,
        deleted_at: datetime | None = None,
        **extra: Any,
    ) -> Post:
        created = utcnow() - age
        post = Post(
            user_id=(author or test_user).id,
            title=title,
            body=body,
            cover_image_key=cover_image_key,
            created_at=created,
            updated_at=created,
            deleted_at=deleted_at,
            **extra,
        )
        post.tags = tags if tags is not None else [tag]
        db_session.add(post)
        db_session.flush()
        db_session.refresh(post)
        return post

    return _make_post


@pytest.fixture()
def test_post(make_post: Callable[..., Post]) -> Post:
    """Create a fresh, active post owned by the primary test user."""
    return make_post()
