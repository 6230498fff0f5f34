"""Post store protocol, shared validation helpers, and the in-memory backend."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable
from uuid import uuid4

import structlog
from pydantic import ValidationError

from blogpost_api.errors import PostNotFoundError, PostValidationError
from blogpost_api.models import BlogPost, PostCreate, PostUpdate

log = structlog.get_logger()


@runtime_checkable
class PostStore(Protocol):
    """Protocol for blog post persistence backends."""

    async def insert_many(
        self, records: Iterable[Mapping[str, Any] | PostCreate]
    ) -> list[BlogPost]: ...
    async def create(self, record: Mapping[str, Any] | PostCreate) -> BlogPost: ...
    async def list_all(self) -> list[BlogPost]: ...
    async def find_by_id(self, post_id: str) -> BlogPost | None: ...
    async def update_by_id(self, post_id: str, changes: Mapping[str, Any]) -> BlogPost: ...
    async def delete_by_id(self, post_id: str) -> None: ...
    async def count(self) -> int: ...
    async def clear(self) -> None: ...

    async def aclose(self) -> None: ...


def new_post_id() -> str:
    """Assign a post id. uuid4 hex: unique without coordination, opaque to clients."""
    return uuid4().hex


def utc_now() -> datetime:
    """Creation timestamp truncated to milliseconds, the precision BSON dates keep."""
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def describe_validation_error(exc: ValidationError) -> str:
    """Render pydantic errors as a short client-facing message."""
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"])
        if err["type"] == "missing":
            parts.append(f"Missing `{field}` in request body")
        else:
            parts.append(f"Invalid `{field}`: {err['msg']}")
    return "; ".join(parts)


def parse_create(record: Mapping[str, Any] | PostCreate) -> PostCreate:
    if isinstance(record, PostCreate):
        return record
    try:
        return PostCreate.model_validate(dict(record))
    except ValidationError as exc:
        raise PostValidationError(describe_validation_error(exc)) from exc


def parse_changes(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Validate an update patch; returns only title/content/author that are present."""
    try:
        return PostUpdate.model_validate(dict(changes)).changes()
    except ValidationError as exc:
        raise PostValidationError(describe_validation_error(exc)) from exc


def build_post(payload: PostCreate) -> BlogPost:
    """Turn a validated create payload into a record with id and created assigned."""
    return BlogPost(
        id=new_post_id(),
        title=payload.title,
        content=payload.content,
        author=payload.author,
        created=utc_now(),
    )


class MemoryPostStore:
    """In-memory post store for local runs and testing.

    Records are kept in insertion order. Implements PostStore protocol.
    """

    def __init__(self) -> None:
        self._posts: dict[str, BlogPost] = {}

    async def insert_many(
        self, records: Iterable[Mapping[str, Any] | PostCreate]
    ) -> list[BlogPost]:
        posts = [build_post(parse_create(r)) for r in records]
        for post in posts:
            self._posts[post.id] = post
        return [p.model_copy(deep=True) for p in posts]

    async def create(self, record: Mapping[str, Any] | PostCreate) -> BlogPost:
        post = build_post(parse_create(record))
        self._posts[post.id] = post
        log.debug("post_stored", post_id=post.id, backend="memory")
        return post.model_copy(deep=True)

    async def list_all(self) -> list[BlogPost]:
        return [p.model_copy(deep=True) for p in self._posts.values()]

    async def find_by_id(self, post_id: str) -> BlogPost | None:
        post = self._posts.get(post_id)
        return post.model_copy(deep=True) if post else None

    async def update_by_id(self, post_id: str, changes: Mapping[str, Any]) -> BlogPost:
        patch = parse_changes(changes)
        current = self._posts.get(post_id)
        if current is None:
            raise PostNotFoundError(post_id)
        updated = current.with_changes(patch)
        self._posts[post_id] = updated
        return updated.model_copy(deep=True)

    async def delete_by_id(self, post_id: str) -> None:
        if self._posts.pop(post_id, None) is None:
            raise PostNotFoundError(post_id)

    async def count(self) -> int:
        return len(self._posts)

    async def clear(self) -> None:
        self._posts.clear()

    async def aclose(self) -> None:
        """Drop all records; there is no connection to close."""
        self._posts.clear()
