"""Pytest fixtures for favourites API tests."""

from pathlib import Path
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from favourites_api.app import create_app
from favourites_api.config import Settings
from favourites_api.core.security import create_access_token, create_unsigned_token
from favourites_api.core.sql_store import SQLFavouritesStore
from favourites_api.core.store import FavouritesStore, MemoryFavouritesStore
from favourites_api.database import create_db_engine

TEST_SECRET = "test-secret-key-for-favourites"

JSON_HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}


def make_settings(**overrides) -> Settings:
    """Build settings for tests without reading the environment's secrets."""
    values = {
        "jwt_secret": TEST_SECRET,
        "allow_unsigned_tokens": False,
        "database_url": "sqlite:///:memory:",
        "rate_limit_requests": 0,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(scope="function")
def settings() -> Settings:
    return make_settings()


@pytest.fixture(scope="function")
def memory_store() -> MemoryFavouritesStore:
    return MemoryFavouritesStore()


@pytest.fixture(scope="function")
def sql_store(tmp_path: Path) -> Generator[SQLFavouritesStore, None, None]:
    """SQL store over a throwaway SQLite file.

    A file database gives every session its own connection, so concurrent
    tests exercise the primary key constraint the way a server database would.
    """
    db_settings = make_settings(database_url=f"sqlite:///{tmp_path / 'favourites.db'}")
    store = SQLFavouritesStore.from_engine(create_db_engine(db_settings))
    store.create_schema()
    try:
        yield store
    finally:
        store.close()


@pytest.fixture(scope="function", params=["memory", "sql"])
def store(request) -> FavouritesStore:
    """Run a test once against each store backend."""
    if request.param == "memory":
        return request.getfixturevalue("memory_store")
    return request.getfixturevalue("sql_store")


@pytest.fixture(scope="function")
def make_client(memory_store: MemoryFavouritesStore) -> Callable[..., TestClient]:
    """Factory for test clients with custom settings.

    Example:
        ```python
        def test_example(make_client):
            client = make_client(rate_limit_requests=2)
        ```
    """

    def _make_client(store: FavouritesStore | None = None, **overrides) -> TestClient:
        app = create_app(settings=make_settings(**overrides), store=store or memory_store)
        return TestClient(app)

    return _make_client


@pytest.fixture(scope="function")
def test_client(make_client) -> TestClient:
    """Client for an app in signed mode backed by the in-memory store."""
    return make_client()


@pytest.fixture(scope="function")
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Factory returning JSON headers with a signed bearer token for a user."""

    def _auth_headers(user_id: str) -> dict[str, str]:
        token = create_access_token(user_id, TEST_SECRET)
        return {**JSON_HEADERS, "Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture(scope="function")
def unsigned_token() -> Callable[..., str]:
    return create_unsigned_token
