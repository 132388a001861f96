import os
import tempfile
from pathlib import Path

_DB_DIR = Path(tempfile.mkdtemp(prefix="petly-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'petly.db'}"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["OPENAI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from petly.api.utils.rate_limit import auth_limiter, chat_limiter
from petly.db import models  # noqa: F401
from petly.db.base import Base
from petly.db.session import SessionLocal, engine
from petly.main import app


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    auth_limiter.reset()
    chat_limiter.reset()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


def signup_and_login(client, email="owner@petly.dev", password="secret123", full_name="Alex Owner"):
    resp = client.post("/auth/signup", json={"email": email, "password": password, "full_name": full_name})
    assert resp.status_code == 201, resp.text
    resp = client.post("/auth/login", data={"username": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    return signup_and_login(client)


@pytest.fixture
def other_headers(client):
    return signup_and_login(client, email="neighbor@petly.dev", full_name="Sam Neighbor")


@pytest.fixture
def dog(client, auth_headers):
    resp = client.post(
        "/dogs/",
        json={"name": "Biscuit", "breed": "Beagle", "age_years": 2, "age_months": 3, "weight_lbs": 24.5},
        headers=auth_headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
