"""HTTP handlers for the ``/posts`` resource."""

import structlog
from fastapi import APIRouter, Request, Response

from blogpost_api.errors import PostNotFoundError, PostValidationError
from blogpost_api.metrics import posts_created_total, posts_deleted_total, posts_updated_total
from blogpost_api.models import PostCreate, PostResponse, PostUpdate
from blogpost_api.store import PostStore

log = structlog.get_logger()

router = APIRouter(prefix="/posts", tags=["posts"])


def _store(request: Request) -> PostStore:
    store: PostStore = request.app.state.store
    return store


@router.get("", response_model=list[PostResponse])
async def list_posts(request: Request) -> list[PostResponse]:
    posts = await _store(request).list_all()
    return [post.serialize() for post in posts]


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: str, request: Request) -> PostResponse:
    post = await _store(request).find_by_id(post_id)
    if post is None:
        raise PostNotFoundError(post_id)
    return post.serialize()


@router.post("", status_code=201, response_model=PostResponse)
async def create_post(payload: PostCreate, request: Request) -> PostResponse:
    post = await _store(request).create(payload)
    posts_created_total.add(1)
    await log.ainfo("post_created", post_id=post.id)
    return post.serialize()


@router.put("/{post_id}", status_code=204, response_class=Response)
async def update_post(post_id: str, payload: PostUpdate, request: Request) -> Response:
    if payload.id != post_id:
        msg = f"Request path id ({post_id}) and request body id ({payload.id}) must match"
        await log.awarning("post_update_rejected", post_id=post_id, body_id=payload.id)
        raise PostValidationError(msg)
    changes = payload.changes()
    await _store(request).update_by_id(post_id, changes)
    posts_updated_total.add(1)
    await log.ainfo("post_updated", post_id=post_id, fields=sorted(changes))
    return Response(status_code=204)


@router.delete("/{post_id}", status_code=204, response_class=Response)
async def delete_post(post_id: str, request: Request) -> Response:
    await _store(request).delete_by_id(post_id)
    posts_deleted_total.add(1)
    await log.ainfo("post_deleted", post_id=post_id)
    return Response(status_code=204)
