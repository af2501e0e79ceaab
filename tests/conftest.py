import os

# Settings are read at import time; configure them before importing the app.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from muirgen import services
from muirgen.api import app
from muirgen.database import Base


@pytest.fixture
def session_local(monkeypatch):
    """Provide an isolated in-memory database for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(services, "SessionLocal", TestingSessionLocal)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def client(session_local):
    return TestClient(app)


VESSEL_PAYLOAD = {
    "vesselName": "Muirgen",
    "vesselFlagNation": "Ireland",
    "vesselPortOfRegistry": "Galway",
    "vesselBuildDetails": "Steel ketch, 1998",
    "vesselOfficialNumber": "IRL-40412",
    "vesselHullIdentificationNumber": "HIN-XK29",
    "vesselKeelOffset": 1.8,
    "vesselWaterlineOffset": 0.4,
}


@pytest.fixture
def vessel_payload():
    return dict(VESSEL_PAYLOAD)
