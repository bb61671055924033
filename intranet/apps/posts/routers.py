"""
Posts router.

Entry/exit only, no logic here. Listing and reading are public
(anonymous callers see the public feed); writes need a signed-in user.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import verify_user, optional_user
from intranet.apps.posts.schemas import CommentCreate, PostCreate, PostUpdate
from intranet.apps.posts.services import (
    list_posts,
    list_user_posts,
    list_department_posts,
    list_group_posts,
    get_visible_post,
    serialize_posts,
    serialize_comments,
    create_post,
    update_post,
    delete_post,
    add_media,
    set_post_like,
    list_comments,
    add_comment,
    update_comment,
    delete_comment,
    set_comment_like,
)
from intranet.core.activity import record_activity
from intranet.core.entities import EntityKind
from intranet.db.database import get_session
from intranet.utils.pagination import PageParams
from intranet.utils.responses import success_response, paginated_response

router = APIRouter(prefix="/api/posts", tags=["Posts"])


async def _one(session: AsyncSession, post, viewer: Optional[User], with_comments: bool = False) -> dict:
    [item] = await serialize_posts(session, [post], viewer, with_comments=with_comments)
    return item.model_dump()


# ── Feeds ─────────────────────────────────────────────────────────────────────

@router.get("")
async def index(
    params: PageParams = Depends(),
    viewer: Optional[User] = Depends(optional_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_posts(session, viewer, params)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.get("/user/{user_id}")
async def by_user(
    user_id: uuid.UUID,
    params: PageParams = Depends(),
    viewer: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_user_posts(session, viewer, user_id, params)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.get("/department/{department_id}")
async def by_department(
    department_id: uuid.UUID,
    params: PageParams = Depends(),
    viewer: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_department_posts(session, viewer, department_id, params)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.get("/group/{group_id}")
async def by_group(
    group_id: uuid.UUID,
    params: PageParams = Depends(),
    viewer: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_group_posts(session, viewer, group_id, params)
    return paginated_response([i.model_dump() for i in items], total, params)


# ── Posts ─────────────────────────────────────────────────────────────────────

@router.post("", status_code=201)
async def create(
    request: Request,
    data: PostCreate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    post = await create_post(session, user, data)
    await record_activity(session, request, user, "create", EntityKind.POST, post.id)
    return success_response(status_code=201, message="Post created", data=await _one(session, post, user))


@router.get("/{post_id}")
async def show(
    post_id: uuid.UUID,
    viewer: Optional[User] = Depends(optional_user),
    session: AsyncSession = Depends(get_session),
):
    post = await get_visible_post(session, post_id, viewer)
    return success_response(data=await _one(session, post, viewer, with_comments=True))


@router.put("/{post_id}")
async def update(
    request: Request,
    post_id: uuid.UUID,
    data: PostUpdate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    post = await update_post(session, user, post_id, data)
    await record_activity(session, request, user, "update", EntityKind.POST, post.id)
    return success_response(message="Post updated", data=await _one(session, post, user))


@router.delete("/{post_id}")
async def destroy(
    request: Request,
    post_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    await delete_post(session, user, post_id)
    await record_activity(session, request, user, "delete", EntityKind.POST, post_id)
    return success_response(message="Post deleted", data={})


@router.post("/{post_id}/media")
async def media(
    request: Request,
    post_id: uuid.UUID,
    media: List[UploadFile] = File(...),
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    post = await add_media(session, user, post_id, media)
    await record_activity(session, request, user, "upload", EntityKind.POST, post.id, f"{len(media)} file(s)")
    return success_response(message="Media uploaded", data=await _one(session, post, user))


@router.post("/{post_id}/like")
async def like(
    post_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    result = await set_post_like(session, user, post_id, like=True)
    return success_response(data=result.model_dump())


@router.delete("/{post_id}/like")
async def unlike(
    post_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    result = await set_post_like(session, user, post_id, like=False)
    return success_response(data=result.model_dump())


# ── Comments ──────────────────────────────────────────────────────────────────

@router.get("/{post_id}/comments")
async def comments(
    post_id: uuid.UUID,
    params: PageParams = Depends(),
    viewer: Optional[User] = Depends(optional_user),
    session: AsyncSession = Depends(get_session),
):
    items, total = await list_comments(session, viewer, post_id, params)
    return paginated_response([i.model_dump() for i in items], total, params)


@router.post("/{post_id}/comments", status_code=201)
async def comment_create(
    request: Request,
    post_id: uuid.UUID,
    data: CommentCreate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    comment = await add_comment(session, user, post_id, data)
    await record_activity(session, request, user, "create", EntityKind.COMMENT, comment.id)
    [item] = await serialize_comments(session, [comment], user)
    return success_response(status_code=201, message="Comment added", data=item.model_dump())


@router.put("/{post_id}/comments/{comment_id}")
async def comment_update(
    request: Request,
    post_id: uuid.UUID,
    comment_id: uuid.UUID,
    data: CommentCreate,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    comment = await update_comment(session, user, post_id, comment_id, data)
    await record_activity(session, request, user, "update", EntityKind.COMMENT, comment.id)
    [item] = await serialize_comments(session, [comment], user)
    return success_response(message="Comment updated", data=item.model_dump())


@router.delete("/{post_id}/comments/{comment_id}")
async def comment_delete(
    request: Request,
    post_id: uuid.UUID,
    comment_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    await delete_comment(session, user, post_id, comment_id)
    await record_activity(session, request, user, "delete", EntityKind.COMMENT, comment_id)
    return success_response(message="Comment deleted", data={})


@router.post("/{post_id}/comments/{comment_id}/like")
async def comment_like(
    post_id: uuid.UUID,
    comment_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    result = await set_comment_like(session, user, post_id, comment_id, like=True)
    return success_response(data=result.model_dump())


@router.delete("/{post_id}/comments/{comment_id}/like")
async def comment_unlike(
    post_id: uuid.UUID,
    comment_id: uuid.UUID,
    user: User = Depends(verify_user),
    session: AsyncSession = Depends(get_session),
):
    result = await set_comment_like(session, user, post_id, comment_id, like=False)
    return success_response(data=result.model_dump())
