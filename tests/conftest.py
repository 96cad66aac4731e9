# tests/conftest.py
from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")

from huddle.api.v1.dependencies import get_gateway
from huddle.core.settings import settings
from huddle.db.session import Base
from huddle.db.session import get_db as app_get_session
from huddle.main import app as fastapi_app
from huddle.models import Channel, ChannelType, DirectConversation
from huddle.repositories import UnitOfWork
from huddle.services import RecordingNotificationGateway

TEST_DB_URL = "sqlite://"


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
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def uow(db_session: Session) -> UnitOfWork:
    return UnitOfWork(db_session)


@pytest.fixture()
def gateway() -> RecordingNotificationGateway:
    """Notification gateway that records every dispatched event."""
    return RecordingNotificationGateway()


@pytest.fixture()
def make_service(uow: UnitOfWork, gateway: RecordingNotificationGateway) -> Callable:
    """Build any service class on the shared unit of work and recording gateway."""

    def _make(service_cls: type):
        return service_cls(uow, gateway)

    return _make


@pytest.fixture()
def alice() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def bob() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def carol() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def conversation(uow: UnitOfWork, alice: uuid.UUID, bob: uuid.UUID) -> DirectConversation:
    """A persisted conversation started by alice with bob, without messages yet."""
    created = DirectConversation.start(alice, bob)
    uow.conversations.add(created, created.build_members())
    uow.commit()
    return created


@pytest.fixture()
def channel(uow: UnitOfWork, alice: uuid.UUID, bob: uuid.UUID) -> Channel:
    """A public channel owned by alice with bob as a plain member."""
    created = Channel.create(
        name="general",
        description="Company-wide announcements",
        channel_type=ChannelType.PUBLIC,
        created_by=alice,
    )
    created.add_member(bob)
    uow.channels.add(created)
    uow.commit()
    return created


@pytest.fixture()
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(
    app: FastAPI,
    session_factory: sessionmaker[Session],
    gateway: RecordingNotificationGateway,
) -> Iterator[TestClient]:
    def _get_session_override() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_gateway] = lambda: gateway
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_gateway, None)


def create_access_token(user_id: uuid.UUID) -> str:
    return jwt.encode({"sub": str(user_id)}, settings.secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture()
def auth_headers() -> Callable[[uuid.UUID], dict[str, str]]:
    """Return a helper building authorization headers for a user id."""

    def _headers(user_id: uuid.UUID) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers
