"""Tests for OTel metrics recording on the /posts routes."""

from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import FastAPI
from httpx import AsyncClient

from blogpost_api.errors import StoreError
from blogpost_api.models import BlogPost
from tests.conftest import generate_post_data


async def test_create_increments_created_counter(client: AsyncClient) -> None:
    counter = MagicMock()
    with patch("blogpost_api.routes.posts_created_total", counter):
        resp = await client.post("/posts", json=generate_post_data())
    assert resp.status_code == 201
    counter.add.assert_called_once_with(1)


async def test_rejected_create_does_not_count(client: AsyncClient) -> None:
    counter = MagicMock()
    with patch("blogpost_api.routes.posts_created_total", counter):
        resp = await client.post("/posts", json={"title": "no body"})
    assert resp.status_code == 400
    counter.add.assert_not_called()


async def test_update_and_delete_increment_counters(
    client: AsyncClient, seeded: list[BlogPost]
) -> None:
    updated, deleted = MagicMock(), MagicMock()
    post_id = seeded[0].id
    with (
        patch("blogpost_api.routes.posts_updated_total", updated),
        patch("blogpost_api.routes.posts_deleted_total", deleted),
    ):
        await client.put(f"/posts/{post_id}", json={"id": post_id, "title": "x"})
        await client.delete(f"/posts/{post_id}")
    updated.add.assert_called_once_with(1)
    deleted.add.assert_called_once_with(1)


async def test_store_error_increments_error_counter(client: AsyncClient, app: FastAPI) -> None:
    counter = MagicMock()
    app.state.store.list_all = AsyncMock(side_effect=StoreError("down"))
    with patch("blogpost_api.main.store_errors_total", counter):
        resp = await client.get("/posts")
    assert resp.status_code == 500
    counter.add.assert_called_once_with(1, {"path": "/posts"})
