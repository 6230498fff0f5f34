"""MongoDB-backed post store.

Uses motor for async MongoDB operations. Posts live in the ``blogposts``
collection keyed by the store-assigned id in ``_id``; the database's unique
``_id`` index is the final guard on id uniqueness.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from blogpost_api.errors import PostNotFoundError, StoreError
from blogpost_api.models import BlogPost, PostCreate
from blogpost_api.store import build_post, parse_changes, parse_create

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorClient

log = structlog.get_logger()

COLLECTION_NAME = "blogposts"


@contextmanager
def _driver_errors(op: str) -> Iterator[None]:
    """Translate driver failures into StoreError; the cause stays in the log."""
    try:
        yield
    except PyMongoError as exc:
        log.error("store_error", op=op, error=str(exc))
        raise StoreError(f"{op} failed") from exc


class MongoPostStore:
    """Post store over a MongoDB collection. Implements PostStore protocol."""

    def __init__(
        self,
        client: AsyncIOMotorClient[Any],
        database_name: str,
        collection_name: str = COLLECTION_NAME,
    ) -> None:
        self._client = client
        self._collection = client[database_name][collection_name]

    async def insert_many(
        self, records: Iterable[Mapping[str, Any] | PostCreate]
    ) -> list[BlogPost]:
        posts = [build_post(parse_create(r)) for r in records]
        if not posts:
            return []
        with _driver_errors("insert_many"):
            await self._collection.insert_many([p.to_document() for p in posts])
        log.debug("posts_inserted", count=len(posts))
        return posts

    async def create(self, record: Mapping[str, Any] | PostCreate) -> BlogPost:
        post = build_post(parse_create(record))
        with _driver_errors("create"):
            await self._collection.insert_one(post.to_document())
        log.debug("post_stored", post_id=post.id, backend="mongo")
        return post

    async def list_all(self) -> list[BlogPost]:
        with _driver_errors("list"):
            docs = await self._collection.find({}).to_list(length=None)
        return [BlogPost.from_document(d) for d in docs]

    async def find_by_id(self, post_id: str) -> BlogPost | None:
        with _driver_errors("find_by_id"):
            doc = await self._collection.find_one({"_id": post_id})
        return BlogPost.from_document(doc) if doc else None

    async def update_by_id(self, post_id: str, changes: Mapping[str, Any]) -> BlogPost:
        patch = parse_changes(changes)
        with _driver_errors("update_by_id"):
            if patch:
                doc = await self._collection.find_one_and_update(
                    {"_id": post_id},
                    {"$set": patch},
                    return_document=ReturnDocument.AFTER,
                )
            else:
                doc = await self._collection.find_one({"_id": post_id})
        if doc is None:
            raise PostNotFoundError(post_id)
        return BlogPost.from_document(doc)

    async def delete_by_id(self, post_id: str) -> None:
        with _driver_errors("delete_by_id"):
            result = await self._collection.delete_one({"_id": post_id})
        if result.deleted_count == 0:
            raise PostNotFoundError(post_id)

    async def count(self) -> int:
        with _driver_errors("count"):
            total: int = await self._collection.count_documents({})
        return total

    async def clear(self) -> None:
        with _driver_errors("clear"):
            await self._collection.delete_many({})

    async def aclose(self) -> None:
        """Close the underlying MongoDB client."""
        self._client.close()
