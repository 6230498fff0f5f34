"""Pydantic models for blog posts: inbound payloads, stored records, API representation."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Author(BaseModel):
    """Author name pair. Stored as a pair; only the API flattens it."""

    model_config = ConfigDict(strict=True)

    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class PostCreate(BaseModel):
    """Body of ``POST /posts``. Unknown keys (including ``created``) are ignored."""

    model_config = ConfigDict(strict=True)

    title: str
    content: str
    author: Author


class PostUpdate(BaseModel):
    """Body of ``PUT /posts/{id}``. Every field except ``id`` is optional."""

    model_config = ConfigDict(strict=True)

    id: str | None = Field(default=None, description="Must match the path id")
    title: str | None = None
    content: str | None = None
    author: Author | None = None

    def changes(self) -> dict[str, Any]:
        """Fields present in the payload, in stored (camelCase) shape. Never id/created."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"id"})


class PostResponse(BaseModel):
    """API representation: exactly ``id, author, content, title, created``."""

    id: str
    author: str = Field(description="'firstName lastName'")
    content: str
    title: str
    created: datetime


class BlogPost(BaseModel):
    """A stored blog post record."""

    id: str = Field(description="Store-assigned identifier, immutable")
    title: str
    content: str
    author: Author
    created: datetime = Field(description="UTC creation time, immutable")

    def serialize(self) -> PostResponse:
        return PostResponse(
            id=self.id,
            author=self.author.full_name,
            content=self.content,
            title=self.title,
            created=self.created,
        )

    def with_changes(self, changes: dict[str, Any]) -> "BlogPost":
        """Return a copy with title/content/author replaced from ``changes``."""
        data = self.model_dump(by_alias=True)
        data.update({k: v for k, v in changes.items() if k in ("title", "content", "author")})
        return BlogPost.model_validate(data)

    def to_document(self) -> dict[str, Any]:
        """MongoDB document shape (``id`` stored as ``_id``)."""
        return {
            "_id": self.id,
            "title": self.title,
            "content": self.content,
            "author": self.author.model_dump(by_alias=True),
            "created": self.created,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "BlogPost":
        created: datetime = doc["created"]
        # BSON dates come back naive unless the client is tz_aware
        if created.tzinfo is None:
            created = created.replace(tzinfo=UTC)
        return cls.model_validate(
            {
                "id": str(doc["_id"]),
                "title": doc["title"],
                "content": doc["content"],
                "author": doc["author"],
                "created": created,
            }
        )
