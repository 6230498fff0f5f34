"""Application configuration via environment variables."""

from typing import Literal
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_DATABASE_URL = "mongodb://localhost/blogpost-app"
DEFAULT_TEST_DATABASE_URL = "mongodb://localhost/blogpost-app-test"
DEFAULT_DATABASE_NAME = "blogpost-app"


class Settings(BaseSettings):
    """Service configuration loaded from environment variables."""

    model_config = {"env_prefix": ""}

    # Database
    database_url: str = Field(
        default=DEFAULT_DATABASE_URL, description="MongoDB connection string"
    )
    test_database_url: str = Field(
        default=DEFAULT_TEST_DATABASE_URL,
        description="MongoDB connection string for the isolated test database",
    )
    store_backend: Literal["mongo", "memory"] = Field(
        default="mongo", description="Post store backend: 'mongo' or 'memory'"
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Server bind host")
    port: int = Field(default=8080, description="Server bind port")
    log_level: str = Field(default="info", description="Log level")

    @field_validator("database_url", "test_database_url")
    @classmethod
    def _validate_mongo_url(cls, v: str) -> str:
        scheme = urlparse(v).scheme
        if scheme not in ("mongodb", "mongodb+srv"):
            raise ValueError(f"expected a mongodb:// or mongodb+srv:// URL, got {v!r}")
        return v

    @property
    def database_name(self) -> str:
        """Database named in the DATABASE_URL path, or the default name."""
        return database_name_from_url(self.database_url)


def database_name_from_url(url: str) -> str:
    name = urlparse(url).path.lstrip("/")
    return name or DEFAULT_DATABASE_NAME
