from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.main import app as fastapi_app
from app.models.match import Match
from app.models.participant import Participant  # noqa: F401
from app.schemas.match import MatchCreate
from app.services import matches
from app.services.utils import utc_now_naive

CREATOR_ID = "creator-1"
CREATOR_NAME = "Carla"


def tomorrow() -> date:
    return date.today() + timedelta(days=1)


@pytest.fixture
def engine():
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
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


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

    fastapi_app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(fastapi_app)
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture
def create_match(db):
    """Crea un partido por el servicio (valida y apunta al creador)."""

    def _create(creator_id=CREATOR_ID, creator_name=CREATOR_NAME, **fields):
        data = {
            "title": "Pachanga del jueves",
            "sport": "football",
            "location": "Polideportivo Norte",
            "date": tomorrow(),
            "time": "19:30",
        }
        data.update(fields)
        return matches.create_match(db, MatchCreate(**data), creator_id, creator_name)

    return _create


@pytest.fixture
def insert_match(db):
    """Inserta un partido directamente, sin validación ni creador apuntado."""

    def _insert(**overrides):
        now = utc_now_naive()
        values = {
            "title": "Partido",
            "sport": "football",
            "location": "Campo",
            "date": tomorrow(),
            "time": "18:00",
            "max_players": 10,
            "creator_id": CREATOR_ID,
            "creator_name": CREATOR_NAME,
            "captain_name": "",
            "price_per_person": 0,
            "invite_code": matches.generate_invite_code(),
            "next_position": 0,
            "created_at": now,
            "updated_at": now,
        }
        values.update(overrides)
        match = Match(**values)
        db.add(match)
        db.commit()
        db.refresh(match)
        return match

    return _insert


@pytest.fixture
def api_match(client):
    """Crea un partido a través de la API y devuelve el JSON."""

    def _create(**fields):
        body = {
            "title": "Pachanga",
            "sport": "football",
            "location": "Parque Central",
            "date": tomorrow().isoformat(),
            "time": "20:00",
            "creator_id": CREATOR_ID,
            "creator_name": CREATOR_NAME,
        }
        body.update(fields)
        resp = client.post("/matches", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
