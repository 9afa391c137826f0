"""Test configuration for mongo-data-access.

Reads and writes run against ``mongomock_motor``, so query semantics are real
without a server.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from mongomock_motor import AsyncMongoMockClient

from mongo_data_access import (
    MongoConnectionManager,
    MongoDataAccess,
    MongoSettings,
    WritePolicy,
)

TEST_DB = "test-db"
TEST_COLLECTION = "items"

MONGO_ENV_VARS = (
    "ENV_PREFIX",
    "MONGO_DB_NAME",
    "MONGO_USERNAME",
    "MONGO_PASSWORD",
    "MONGO_EMULATOR_HOST",
    "MONGO_DB_HOST",
)


@pytest.fixture(autouse=True)
def _clean_mongo_env(monkeypatch):
    """Keep the host environment out of MongoSettings."""
    for name in MONGO_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def connected_manager(client: Any) -> MongoConnectionManager:
    """A manager for ``test-db`` that already holds ``client``."""
    settings = MongoSettings(env_prefix="test", db_name="db", emulator_host="mock:27017")
    connection = MongoConnectionManager(settings)
    connection._client = client
    return connection


@pytest.fixture
def mock_client() -> AsyncMongoMockClient:
    return AsyncMongoMockClient()


@pytest.fixture
def mongo_connection(mock_client: AsyncMongoMockClient) -> MongoConnectionManager:
    """Connection manager over the in-memory client."""
    return connected_manager(mock_client)


@pytest.fixture
def data_access(mongo_connection: MongoConnectionManager) -> MongoDataAccess[Any]:
    """Accessor returning plain dicts, bound to ``items``."""
    return MongoDataAccess(mongo_connection, TEST_COLLECTION)


@pytest.fixture
def raw_collection(mock_client: AsyncMongoMockClient) -> Any:
    """The collection behind ``data_access``, for seeding and asserting state."""
    return mock_client.get_database(TEST_DB).get_collection(TEST_COLLECTION)


@pytest.fixture
def failing_collection() -> MagicMock:
    """A collection whose every write is rejected by the store."""
    from pymongo.errors import OperationFailure

    collection = MagicMock()
    error = OperationFailure("write rejected")
    for name in (
        "insert_one",
        "insert_many",
        "update_one",
        "update_many",
        "delete_many",
    ):
        setattr(collection, name, AsyncMock(side_effect=error))
    return collection


def _failing_client(collection: MagicMock) -> MagicMock:
    client = MagicMock()
    client.get_database.return_value.get_collection.return_value = collection
    return client


@pytest.fixture
def failing_data_access(failing_collection: MagicMock) -> MongoDataAccess[Any]:
    """Accessor whose store rejects every write."""
    return MongoDataAccess(
        connected_manager(_failing_client(failing_collection)), TEST_COLLECTION
    )


@pytest.fixture
def strict_failing_data_access(failing_collection: MagicMock) -> MongoDataAccess[Any]:
    """Like ``failing_data_access`` but with ``WritePolicy.STRICT``."""
    return MongoDataAccess(
        connected_manager(_failing_client(failing_collection)),
        TEST_COLLECTION,
        write_policy=WritePolicy.STRICT,
    )
