# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from reeltalk.core.security import create_access_token
from reeltalk.db.session import Base
from reeltalk.db.session import get_db as app_get_session
from reeltalk.main import app as fastapi_app
from reeltalk.models import Category, Post, PostTag, Reply

TEST_DB_URL = "sqlite://"
BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)

_POST_COUNTER = count(1)
_REPLY_COUNTER = count(1)


@pytest.fixture()
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
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI, db_session: Session) -> Iterator[TestClient]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def user_id() -> str:
    return "user-alice"


@pytest.fixture()
def other_user_id() -> str:
    return "user-bob"


@pytest.fixture()
def auth_token(user_id: str) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture()
def other_auth_token(other_user_id: str) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return {"Authorization": f"Bearer {create_access_token(other_user_id)}"}


@pytest.fixture()
def category(db_session: Session) -> Category:
    """Create a default test category."""
    category = Category(slug="reviews", name="Reviews", color="#ff0000", is_active=True)
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    """Return a factory persisting posts with strictly increasing created_at."""

    def _make(**overrides: Any) -> Post:
        n = next(_POST_COUNTER)
        tags = overrides.pop("tags", [])
        fields: dict[str, Any] = {
            "author_id": "author-1",
            "title": f"Post {n}",
            "content": f"Body of post {n}",
            "status": "public",
            "created_at": BASE_TIME + timedelta(minutes=n),
        }
        fields.update(overrides)
        post = Post(**fields)
        post.tag_rows = [PostTag(position=pos, tag=tag) for pos, tag in enumerate(tags)]
        db_session.add(post)
        db_session.commit()
        return post

    return _make


@pytest.fixture()
def make_reply(db_session: Session) -> Callable[..., Reply]:
    """Return a factory persisting replies with strictly increasing created_at."""

    def _make(post: Post, parent: Reply | None = None, **overrides: Any) -> Reply:
        n = next(_REPLY_COUNTER)
        fields: dict[str, Any] = {
            "post_id": post.id,
            "parent_reply_id": parent.id if parent is not None else None,
            "author_id": "author-2",
            "content": f"Reply {n}",
            "created_at": BASE_TIME + timedelta(days=1, seconds=n),
        }
        fields.update(overrides)
        reply = Reply(**fields)
        db_session.add(reply)
        db_session.commit()
        return reply

    return _make


@pytest.fixture()
def test_post(make_post: Callable[..., Post]) -> Post:
    """Create a baseline post for tests."""
    return make_post(title="Dune: Part Two discussion", tags=["dune", "scifi"])


@pytest.fixture()
def test_reply(make_reply: Callable[..., Reply], test_post: Post) -> Reply:
    """Create a baseline top-level reply on ``test_post``."""
    return make_reply(test_post)
