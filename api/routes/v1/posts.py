"""
api/routes/v1/posts.py -- Post CRUD over bearer tokens.

Routes:
  GET    /api/v1/posts        -- paginated list (requires auth)
  GET    /api/v1/posts/{id}   -- single post (requires auth)
  POST   /api/v1/posts        -- create (requires auth)
  PUT    /api/v1/posts/{id}   -- update (requires auth + ownership)
  DELETE /api/v1/posts/{id}   -- delete (requires auth + ownership)

Every handler takes AuthContext from get_auth_context(). Ownership is NOT
checked here: feed/service.py runs the same guard sequence the HTML surface
uses, so both surfaces answer 401 / 404 / 403 identically.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response

from api.models import PostListResponse, PostResponse, PostWrite
from auth.dependencies import get_auth_context
from auth.guards import require_authenticated
from auth.models import AuthContext
from feed import service

router = APIRouter()


@router.get("/posts", response_model=PostListResponse)
def list_posts(
    request: Request,
    page: int = Query(default=1, ge=1),
    ctx: AuthContext = Depends(get_auth_context),
) -> PostListResponse:
    require_authenticated(ctx.identity)
    result = service.list_posts(request.app.state.post_store, page=page)
    return PostListResponse(
        posts=[PostResponse.from_post(p) for p in result.posts],
        total_items=result.total,
        page=result.page,
        total_pages=result.total_pages,
    )


@router.get("/posts/{post_id}", response_model=PostResponse)
def get_post(request: Request, post_id: int, ctx: AuthContext = Depends(get_auth_context)) -> PostResponse:
    require_authenticated(ctx.identity)
    return PostResponse.from_post(service.get_post(request.app.state.post_store, post_id))


@router.post("/posts", response_model=PostResponse, status_code=201)
def create_post(request: Request, body: PostWrite, ctx: AuthContext = Depends(get_auth_context)) -> PostResponse:
    post = service.create_post(request.app.state.post_store, ctx.identity, body.title, body.content)
    return PostResponse.from_post(post)


@router.put("/posts/{post_id}", response_model=PostResponse)
def update_post(
    request: Request,
    post_id: int,
    body: PostWrite,
    ctx: AuthContext = Depends(get_auth_context),
) -> PostResponse:
    post = service.update_post(request.app.state.post_store, ctx.identity, post_id, body.title, body.content)
    return PostResponse.from_post(post)


@router.delete("/posts/{post_id}", status_code=204)
def delete_post(request: Request, post_id: int, ctx: AuthContext = Depends(get_auth_context)) -> Response:
    service.delete_post(request.app.state.post_store, ctx.identity, post_id)
    return Response(status_code=204)
