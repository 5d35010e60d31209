import math
from datetime import datetime
from typing import Any, Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campuslink.auth import get_current_user_id
from campuslink.database import get_db
from campuslink.main import app
from campuslink.models.base import Base
from campuslink.models.event import Event
from campuslink.models.user import User
from campuslink.realtime.broadcast import get_broadcaster

ORGANIZER_ID = 1

# (title, type, lat, lng)
SEED_EVENTS = [
    ("NYC Hack Night", "hackathon", 40.7128, -74.0060),
    ("Philly Founders Meetup", "meetup", 39.9526, -75.1652),
    ("Boston Buildathon", "hackathon", 42.3601, -71.0589),
    ("London Open Source Sprint", "hackathon", 51.5074, -0.1278),
]


def _register_math_functions(dbapi_connection, connection_record) -> None:
    """SQLite stand-ins for the PostgreSQL functions the distance expression uses."""
    dbapi_connection.create_function("radians", 1, math.radians)
    dbapi_connection.create_function("cos", 1, math.cos)
    dbapi_connection.create_function("sin", 1, math.sin)
    dbapi_connection.create_function("acos", 1, math.acos)
    dbapi_connection.create_function("least", 2, min)
    dbapi_connection.create_function("greatest", 2, max)


class FakeBroadcaster:
    """Records publishes instead of talking to Redis."""

    def __init__(self, ok: bool = True):
        self.ok = ok
        self.published: List[Tuple[str, Dict[str, Any]]] = []

    async def publish(self, event_name: str, payload: Dict[str, Any]) -> bool:
        self.published.append((event_name, payload))
        return self.ok


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _register_math_functions)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(db):
    """One organizer + SEED_EVENTS. Returns {title: event_id}."""
    db.add(User(id=ORGANIZER_ID, full_name="Ada Lovelace", email="ada@example.edu"))
    ids = {}
    for title, event_type, lat, lng in SEED_EVENTS:
        ev = Event(
            title=title,
            description=f"{title} description",
            type=event_type,
            start_at=datetime(2026, 11, 1, 18, 0),
            end_at=datetime(2026, 11, 1, 22, 0),
            latitude=lat,
            longitude=lng,
            city=title.split()[0],
            organizer_id=ORGANIZER_ID,
            max_participants=50,
        )
        db.add(ev)
        db.flush()
        ids[title] = ev.id
    db.commit()
    return ids


@pytest.fixture
def broadcaster():
    return FakeBroadcaster()


@pytest.fixture
def client(session_factory, broadcaster):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_id] = lambda: ORGANIZER_ID
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
