"""Shared fixtures: every test gets an app bound to a fresh in-memory SQLite database."""

import os

# Settings are read when products_api.main is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")

import pytest
from fastapi.testclient import TestClient

from products_api.config import Settings
from products_api.main import create_app

FRONTEND = "http://frontend.test"


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", frontend_url=FRONTEND, log_level="WARNING")


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def product(client):
    res = client.post("/api/products", json={"name": "Monitor Curvo - Test", "price": 300})
    assert res.status_code == 201
    return res.json()["data"]
