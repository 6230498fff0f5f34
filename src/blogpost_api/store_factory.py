"""Factory for creating the post store backend based on configuration."""

from __future__ import annotations

from typing import cast

from motor.motor_asyncio import AsyncIOMotorClient

from blogpost_api.config import Settings
from blogpost_api.store import MemoryPostStore, PostStore
from blogpost_api.store_mongo import MongoPostStore


def create_store(settings: Settings) -> PostStore:
    """Create the post store backend based on STORE_BACKEND config.

    Returns:
        MongoPostStore if STORE_BACKEND=mongo, MemoryPostStore otherwise.
    """
    if settings.store_backend == "mongo":
        # motor connects lazily; no I/O happens until the first operation
        client: AsyncIOMotorClient[dict[str, object]] = AsyncIOMotorClient(
            settings.database_url, tz_aware=True
        )
        return cast(PostStore, MongoPostStore(client, settings.database_name))

    return cast(PostStore, MemoryPostStore())
