# tests/conftest.py
import os

# The app reads its settings at import time: point it at an in-memory database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("WS_HEARTBEAT_INTERVAL", "3600")

import pytest
from unittest.mock import MagicMock, AsyncMock
from fastapi import WebSocket
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base
from app.repositories.room import room_repository
from app.services.websocket import ConnectionManager


@pytest.fixture
def engine():
    """Fresh in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded_rooms(db_session):
    """Building B room 201 plus a couple of neighbours; returns {room_number: id}"""
    for building, floor, number, status in [
        ("B", 2, "201", "vacant"),
        ("B", 2, "202", "ready"),
        ("C", 3, "301", "cleaning"),
    ]:
        room_repository.create_if_absent(db_session, building, floor, number, status=status)
    return {room.room_number: room.id for room in room_repository.list_all(db_session)}


@pytest.fixture
def manager_instance():
    # Sử dụng một instance mới cho mỗi test
    return ConnectionManager(send_timeout=1.0, heartbeat_interval=3600)


def make_websocket():
    ws = MagicMock(spec=WebSocket)
    ws.accept = AsyncMock()
    ws.send_json = AsyncMock()
    ws.receive_text = AsyncMock()
    ws.close = AsyncMock()
    return ws


@pytest.fixture
def mock_websocket():
    return make_websocket()


@pytest.fixture
def mock_bus():
    bus = MagicMock()
    bus.publish = MagicMock()
    return bus


@pytest.fixture
def websocket_factory():
    return make_websocket
