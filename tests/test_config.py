"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from blogpost_api.config import Settings, database_name_from_url
from tests.conftest import make_settings


ENV_VARS = ("DATABASE_URL", "TEST_DATABASE_URL", "PORT", "HOST", "STORE_BACKEND", "LOG_LEVEL")


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    settings = Settings()

    assert settings.database_url == "mongodb://localhost/blogpost-app"
    assert settings.test_database_url == "mongodb://localhost/blogpost-app-test"
    assert settings.port == 8080
    assert settings.host == "0.0.0.0"
    assert settings.store_backend == "mongo"
    assert settings.log_level == "info"


def test_settings_load_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "mongodb://db.internal:27017/posts")
    monkeypatch.setenv("TEST_DATABASE_URL", "mongodb://db.internal:27017/posts-test")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("STORE_BACKEND", "memory")

    settings = Settings()

    assert settings.database_url == "mongodb://db.internal:27017/posts"
    assert settings.test_database_url == "mongodb://db.internal:27017/posts-test"
    assert settings.port == 9000
    assert settings.store_backend == "memory"


def test_settings_rejects_non_mongo_url() -> None:
    with pytest.raises(ValidationError, match="mongodb://"):
        make_settings(database_url="postgres://localhost/db")


def test_settings_rejects_unknown_backend() -> None:
    with pytest.raises(ValidationError):
        make_settings(store_backend="sqlite")


def test_settings_accepts_srv_url() -> None:
    settings = make_settings(database_url="mongodb+srv://cluster0.example.net/blog")
    assert settings.database_name == "blog"


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("mongodb://localhost/blogpost-app", "blogpost-app"),
        ("mongodb://localhost/blogpost-app-test", "blogpost-app-test"),
        ("mongodb://user:pw@h1:27017,h2:27017/posts?replicaSet=rs0", "posts"),
        ("mongodb://localhost", "blogpost-app"),
        ("mongodb://localhost/", "blogpost-app"),
    ],
)
def test_database_name_from_url(url: str, expected: str) -> None:
    assert database_name_from_url(url) == expected
