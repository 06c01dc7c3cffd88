import os

# Keep the background scan out of request tests
os.environ.setdefault("REMINDER_SCHEDULER_ENABLED", "false")
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from memocare.db.base import Base
from memocare.db.session import get_db
from memocare.main import app


class FakeChannel:
    """Stands in for the websocket manager. Users in ``online`` receive events,
    users in ``failing`` make publish raise."""

    def __init__(self, online=(), failing=()):
        self.online = set(online)
        self.failing = set(failing)
        self.sent = []

    async def publish(self, user_id, event, data):
        if user_id in self.failing:
            raise RuntimeError("socket closed")
        if user_id not in self.online:
            return False
        self.sent.append((user_id, event, data))
        return True


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
