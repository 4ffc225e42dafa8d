from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("NODE_ENV", "test")

from finhub.config import Settings  # noqa: E402
from finhub.db import Database  # noqa: E402
from finhub.main import create_app  # noqa: E402


TEST_DB_URL = "sqlite+pysqlite:///:memory:"


@pytest.fixture()
def settings() -> Settings:
    return Settings(database_url=TEST_DB_URL, node_env="test", api_url=None)


@pytest.fixture()
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def db():
    database = Database(TEST_DB_URL)
    database.create_all()
    try:
        yield database
    finally:
        database.dispose()


@pytest.fixture()
def db_session(db):
    with db.session() as session:
        yield session
