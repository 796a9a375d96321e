from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from user_api.core.config import Settings
from user_api.db.session import StorageHandle
from user_api.main import create_app
from user_api.repositories.users import UserRepository


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        secret_key="tests-secret-key",
        skip_mongodb=True,
    )


@pytest.fixture()
def storage() -> StorageHandle:
    return StorageHandle()


@pytest.fixture()
def repo(storage: StorageHandle) -> UserRepository:
    return UserRepository(storage)


@pytest.fixture()
def app(settings: Settings, storage: StorageHandle):
    return create_app(settings=settings, storage=storage)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client
