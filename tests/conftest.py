"""Shared test fixtures."""

from __future__ import annotations

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from histsync.api.app import create_app
from histsync.config import AppConfig, AuthConfig, LoggingConfig, ServerConfig, StorageConfig
from histsync.storage import database
from histsync.storage.commands import CommandRepository
from histsync.storage.models import User
from histsync.storage.systems import SystemRepository
from histsync.storage.users import UserRepository


@pytest.fixture
def app_config(tmp_path):
    """Create a test configuration."""
    return AppConfig(
        server=ServerConfig(addr="http://127.0.0.1:8080"),
        auth=AuthConfig(secret="test-secret", token_hours=1),
        storage=StorageConfig(db_path=str(tmp_path / "test.db")),
        logging=LoggingConfig(level="DEBUG", file=str(tmp_path / "test.log")),
    )


@pytest_asyncio.fixture
async def db(tmp_path):
    conn = await database.connect(str(tmp_path / "store.db"))
    yield conn
    await database.close(conn)


@pytest.fixture
def users(db):
    return UserRepository(db)


@pytest.fixture
def systems(db):
    return SystemRepository(db)


@pytest.fixture
def commands(db):
    return CommandRepository(db)


@pytest_asyncio.fixture
async def alice(users):
    """Id of a registered user."""
    return await users.create(User(username="alice", email="alice@example.com", password="x"))


@pytest_asyncio.fixture
async def bob(users):
    return await users.create(User(username="bob", email="bob@example.com", password="x"))


@pytest.fixture
def client(app_config):
    with TestClient(create_app(app_config)) as c:
        yield c


def register_and_login(client, username: str = "alice", password: str = "secret", mac: str | None = None) -> dict:
    """Create an account and return Authorization headers for it."""
    resp = client.post(
        "/api/v1/user",
        json={"username": username, "email": f"{username}@example.com", "password": password},
    )
    assert resp.status_code == 200, resp.text
    payload = {"username": username, "password": password}
    if mac:
        payload["mac"] = mac
    resp = client.post("/api/v1/login", json=payload)
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['accessToken']}"}
