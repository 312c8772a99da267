"""
api/routes/posts.py -- Post CRUD routes.

Routes:
  GET    /posts        -- list all posts (public)
  GET    /posts/{id}   -- single post (public)
  POST   /posts        -- create a post owned by the caller (requires session)
  PUT    /posts/{id}   -- replace title/content of the caller's post (requires session)
  DELETE /posts/{id}   -- delete the caller's post (requires session)

Ownership:
  The owner of every written post is identity.user_id from the session.
  PostWrite has no userId field, so a client-supplied one never reaches the
  store. PUT and DELETE pass the caller's id to the store, which matches on
  both id and owner; someone else's post looks exactly like a missing one.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import PostResponse, PostWrite
from auth.models import Identity
from auth.session import bound_identity, require_session
from core.models import Post
from core.storage import PostStorage

router = APIRouter()

# Route-level dependency list for the write endpoints. FastAPI solves these
# before the handler's own parameters, so bound_identity() always sees the
# identity that require_session() bound.
_SESSION = [Depends(require_session)]


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Post not found")


@router.get("/posts", response_model=list[PostResponse])
def list_posts(request: Request) -> list[PostResponse]:
    posts: PostStorage = request.app.state.post_store
    return [PostResponse.from_post(p) for p in posts.get_all_posts()]


@router.get("/posts/{post_id}", response_model=PostResponse)
def get_post(request: Request, post_id: int) -> PostResponse:
    posts: PostStorage = request.app.state.post_store
    post = posts.get_post_by_id(post_id)
    if post is None:
        raise _not_found()
    return PostResponse.from_post(post)


@router.post("/posts", response_model=PostResponse, status_code=201, dependencies=_SESSION)
def create_post(
    request: Request,
    body: PostWrite,
    identity: Identity = Depends(bound_identity),
) -> PostResponse:
    """Create a post owned by the authenticated caller."""
    posts: PostStorage = request.app.state.post_store
    post_id = posts.create_post(Post(user_id=identity.user_id, title=body.title, content=body.content))
    created = posts.get_post_by_id(post_id)
    if created is None:
        raise HTTPException(status_code=500, detail="Post not found after write.")
    return PostResponse.from_post(created)


@router.put("/posts/{post_id}", response_model=PostResponse, dependencies=_SESSION)
def update_post(
    request: Request,
    post_id: int,
    body: PostWrite,
    identity: Identity = Depends(bound_identity),
) -> PostResponse:
    posts: PostStorage = request.app.state.post_store
    updated = posts.update_post(Post(id=post_id, user_id=identity.user_id, title=body.title, content=body.content))
    if not updated:
        raise _not_found()
    post = posts.get_post_by_id(post_id)
    if post is None:
        raise _not_found()
    return PostResponse.from_post(post)


@router.delete("/posts/{post_id}", status_code=204, dependencies=_SESSION)
def delete_post(
    request: Request,
    post_id: int,
    identity: Identity = Depends(bound_identity),
) -> Response:
    posts: PostStorage = request.app.state.post_store
    if not posts.delete_post(post_id, identity.user_id):
        raise _not_found()
    return Response(status_code=204)
