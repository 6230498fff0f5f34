"""Shared test constants, fixtures, and factory functions."""

from collections.abc import AsyncIterator
from typing import Any

import pytest
from faker import Faker
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from blogpost_api.config import Settings, database_name_from_url
from blogpost_api.main import create_app, lifespan
from blogpost_api.models import BlogPost
from blogpost_api.store import MemoryPostStore, PostStore
from blogpost_api.store_mongo import MongoPostStore

# -- Constants --

TEST_DATABASE_URL = Settings().test_database_url
TEST_DATABASE_NAME = database_name_from_url(TEST_DATABASE_URL)
SEED_COUNT = 10
API_KEYS = {"id", "author", "content", "title", "created"}

fake = Faker()


# -- Factories --


def make_settings(**overrides: Any) -> Settings:
    """Create a Settings instance pointed at the test database. Override any field.

    The database comes from TEST_DATABASE_URL as set when the call is made.
    """
    env = Settings()
    defaults: dict[str, Any] = {
        "database_url": env.test_database_url,
        "store_backend": "mongo",
    }
    return Settings(**(defaults | overrides))


def generate_post_data() -> dict[str, Any]:
    """A valid-shaped post payload with placeholder text; usable as seed data or a request body."""
    return {
        "title": fake.sentence(),
        "content": fake.paragraph(),
        "author": {"firstName": fake.first_name(), "lastName": fake.last_name()},
    }


def generate_seed_data(count: int = SEED_COUNT) -> list[dict[str, Any]]:
    return [generate_post_data() for _ in range(count)]


# -- Fixtures --


@pytest.fixture
def mongo_client(monkeypatch: pytest.MonkeyPatch) -> AsyncMongoMockClient:
    """In-process MongoDB double, handed to the store factory in place of motor."""
    client = AsyncMongoMockClient()
    monkeypatch.setattr(
        "blogpost_api.store_factory.AsyncIOMotorClient", lambda *args, **kwargs: client
    )
    return client


@pytest.fixture(params=["memory", "mongo"])
async def store(request: pytest.FixtureRequest) -> AsyncIterator[PostStore]:
    """Each PostStore backend, empty at the start of the test."""
    backend: PostStore
    if request.param == "memory":
        backend = MemoryPostStore()
    else:
        backend = MongoPostStore(AsyncMongoMockClient(), TEST_DATABASE_NAME)
    yield backend
    await backend.clear()


@pytest.fixture
async def app(mongo_client: AsyncMongoMockClient) -> AsyncIterator[FastAPI]:
    """The API started against the test database, stopped after the test."""
    test_app = create_app(make_settings())
    async with lifespan(test_app):
        yield test_app


@pytest.fixture
async def seeded(app: FastAPI) -> AsyncIterator[list[BlogPost]]:
    """Seed SEED_COUNT generated posts; drop everything afterwards."""
    post_store: PostStore = app.state.store
    posts = await post_store.insert_many(generate_seed_data())
    yield posts
    await post_store.clear()


@pytest.fixture
async def client(app: FastAPI, seeded: list[BlogPost]) -> AsyncIterator[AsyncClient]:
    """AsyncClient wired to the seeded app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
