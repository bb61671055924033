"""
Post and Comment business logic.

Feeds only show published posts outside private groups; group, user and
department listings apply the same rules with their own scope.
Like toggles reject the redundant transition with a 400.
"""

import uuid
from typing import Dict, List, Optional, Sequence, Tuple

from fastapi import UploadFile
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from intranet.apps.auth.models import User
from intranet.apps.auth.services import get_user_summaries, get_user_or_404
from intranet.apps.departments.models import Department
from intranet.apps.groups.models import Group, GroupMember
from intranet.apps.groups.services import (
    get_group_or_404,
    ensure_can_view,
    ensure_member,
    member_ids,
)
from intranet.apps.notifications.services import notify
from intranet.apps.posts.models import Comment, Post
from intranet.apps.posts.schemas import (
    CommentCreate,
    CommentResponse,
    LikeResponse,
    PostCreate,
    PostResponse,
    PostUpdate,
)
from intranet.core.entities import EntityKind
from intranet.core.permissions import ensure_owner, is_admin, is_owner
from intranet.core.uploads import POST_MEDIA, save_uploads, remove_upload
from intranet.utils.exceptions import (
    BadRequestException,
    PermissionDeniedException,
    ResourceNotFoundException,
)
from intranet.utils.logger import get_logger
from intranet.utils.pagination import PageParams

logger = get_logger(__name__)


# ── Serialization ─────────────────────────────────────────────────────────────

def _liked(likes: Sequence[str], viewer: Optional[User]) -> bool:
    return viewer is not None and str(viewer.id) in (likes or [])


async def serialize_comments(
    session: AsyncSession, comments: List[Comment], viewer: Optional[User]
) -> List[CommentResponse]:
    authors = await get_user_summaries(session, [c.author_id for c in comments])
    return [
        CommentResponse(
            id=c.id,
            post_id=c.post_id,
            author=authors.get(c.author_id),
            content=c.content,
            likes=list(c.likes or []),
            like_count=c.like_count,
            is_liked=_liked(c.likes, viewer),
            created_at=c.created_at,
            updated_at=c.updated_at,
        )
        for c in comments
    ]


async def _comment_counts(session: AsyncSession, post_ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
    if not post_ids:
        return {}
    result = await session.execute(
        select(Comment.post_id, func.count())
        .where(Comment.post_id.in_(post_ids))
        .group_by(Comment.post_id)
    )
    return {post_id: count for post_id, count in result.all()}


async def serialize_posts(
    session: AsyncSession,
    posts: List[Post],
    viewer: Optional[User],
    with_comments: bool = False,
) -> List[PostResponse]:
    authors = await get_user_summaries(session, [p.author_id for p in posts])
    counts = await _comment_counts(session, [p.id for p in posts])

    comments: Dict[uuid.UUID, List[CommentResponse]] = {}
    if with_comments and posts:
        rows = await Comment.find_many(
            session, Comment.post_id.in_([p.id for p in posts]), order_by=Comment.created_at
        )
        for item in await serialize_comments(session, rows, viewer):
            comments.setdefault(item.post_id, []).append(item)

    return [
        PostResponse(
            id=p.id,
            title=p.title,
            content=p.content,
            author=authors.get(p.author_id),
            media=list(p.media or []),
            likes=list(p.likes or []),
            like_count=p.like_count,
            comment_count=counts.get(p.id, 0),
            is_liked=_liked(p.likes, viewer),
            group_id=p.group_id,
            department_id=p.department_id,
            tags=list(p.tags or []),
            is_published=p.is_published,
            publish_date=p.publish_date,
            created_at=p.created_at,
            updated_at=p.updated_at,
            comments=comments.get(p.id, []) if with_comments else None,
        )
        for p in posts
    ]


# ── Visibility ────────────────────────────────────────────────────────────────

def _outside_private_groups():
    public_groups = select(Group.id).where(Group.is_private.is_(False))
    return or_(Post.group_id.is_(None), Post.group_id.in_(public_groups))


def _visible_to(viewer: Optional[User]):
    """Feed filter: published, outside private groups the viewer is not in."""
    if is_admin(viewer):
        return [Post.is_published.is_(True)]
    if viewer is None:
        return [Post.is_published.is_(True), _outside_private_groups()]
    mine = select(GroupMember.group_id).where(GroupMember.user_id == viewer.id)
    return [
        or_(Post.is_published.is_(True), Post.author_id == viewer.id),
        or_(_outside_private_groups(), Post.group_id.in_(mine)),
    ]


async def get_post_or_404(session: AsyncSession, post_id: uuid.UUID) -> Post:
    post = await Post.get_by_id(session, post_id)
    if not post:
        raise ResourceNotFoundException(f"Post not found with id {post_id}")
    return post


async def get_visible_post(session: AsyncSession, post_id: uuid.UUID, viewer: Optional[User]) -> Post:
    """
    Guard: unpublished posts are visible to their author and admins only.
    Guard: posts in a private group follow the group's visibility.
    """
    post = await get_post_or_404(session, post_id)
    if not post.is_published and not (is_admin(viewer) or (viewer and is_owner(viewer, post, "author_id"))):
        raise ResourceNotFoundException(f"Post not found with id {post_id}")
    if post.group_id:
        group = await Group.get_by_id(session, post.group_id)
        if group:
            await ensure_can_view(session, group, viewer)
    return post


# ── Posts ─────────────────────────────────────────────────────────────────────

async def list_posts(
    session: AsyncSession, viewer: Optional[User], params: PageParams
) -> Tuple[List[PostResponse], int]:
    posts, total = await Post.paginate(
        session, *_visible_to(viewer), page=params.page, limit=params.limit, sort=params.sort
    )
    return await serialize_posts(session, posts, viewer), total


async def list_user_posts(
    session: AsyncSession, viewer: Optional[User], user_id: uuid.UUID, params: PageParams
) -> Tuple[List[PostResponse], int]:
    await get_user_or_404(session, user_id)
    posts, total = await Post.paginate(
        session, *_visible_to(viewer), page=params.page, limit=params.limit, sort=params.sort,
        author_id=user_id,
    )
    return await serialize_posts(session, posts, viewer), total


async def list_department_posts(
    session: AsyncSession, viewer: Optional[User], department_id: uuid.UUID, params: PageParams
) -> Tuple[List[PostResponse], int]:
    if not await Department.exists(session, id=department_id):
        raise ResourceNotFoundException(f"Department not found with id {department_id}")
    posts, total = await Post.paginate(
        session, *_visible_to(viewer), page=params.page, limit=params.limit, sort=params.sort,
        department_id=department_id,
    )
    return await serialize_posts(session, posts, viewer), total


async def list_group_posts(
    session: AsyncSession, viewer: Optional[User], group_id: uuid.UUID, params: PageParams
) -> Tuple[List[PostResponse], int]:
    group = await get_group_or_404(session, group_id)
    await ensure_can_view(session, group, viewer)
    posts, total = await Post.paginate(
        session, Post.is_published.is_(True), page=params.page, limit=params.limit, sort=params.sort,
        group_id=group.id,
    )
    return await serialize_posts(session, posts, viewer), total


async def create_post(session: AsyncSession, user: User, data: PostCreate) -> Post:
    """
    The caller becomes the author.

    Guard: group posts require membership; other members are notified.
    """
    group = None
    if data.group_id:
        group = await get_group_or_404(session, data.group_id)
        await ensure_member(session, group, user)
    if data.department_id and not await Department.exists(session, id=data.department_id):
        raise ResourceNotFoundException(f"Department not found with id {data.department_id}")

    post = await Post.create(db=session, author_id=user.id, **data.model_dump())
    logger.info(f"Post created: {post.id} by {user.email}")

    if group is not None:
        await notify(
            session,
            await member_ids(session, group.id),
            "post",
            f"{user.name} posted in {group.name}",
            related_type=EntityKind.POST,
            related_id=post.id,
            sender_id=user.id,
        )
    return post


async def update_post(session: AsyncSession, user: User, post_id: uuid.UUID, data: PostUpdate) -> Post:
    post = await get_post_or_404(session, post_id)
    ensure_owner(user, post, "author_id", detail="Not authorized to update this post")
    post.apply(data.model_dump(exclude_unset=True, exclude_none=True))
    return await post.save(session)


async def delete_post(session: AsyncSession, user: User, post_id: uuid.UUID) -> None:
    post = await get_post_or_404(session, post_id)
    ensure_owner(user, post, "author_id", detail="Not authorized to delete this post")

    media = list(post.media or [])
    await Comment.delete_many(session, commit=False, post_id=post.id)
    await post.delete(session)
    for url in media:
        remove_upload(url)


async def add_media(
    session: AsyncSession, user: User, post_id: uuid.UUID, files: List[UploadFile]
) -> Post:
    post = await get_post_or_404(session, post_id)
    ensure_owner(user, post, "author_id", detail="Not authorized to update this post")

    stored = await save_uploads(files, POST_MEDIA, "media")
    if not stored:
        raise BadRequestException("Please upload at least one file")
    post.media = [*(post.media or []), *(s.url for s in stored)]
    return await post.save(session)


# ── Likes ─────────────────────────────────────────────────────────────────────

def _toggle(likes: Sequence[str], user: User, like: bool, noun: str) -> List[str]:
    """Return the new like list; the redundant transition is a 400."""
    uid = str(user.id)
    current = list(likes or [])
    if like:
        if uid in current:
            raise BadRequestException(f"{noun} already liked")
        return [*current, uid]
    if uid not in current:
        raise BadRequestException(f"{noun} has not yet been liked")
    return [i for i in current if i != uid]


async def set_post_like(
    session: AsyncSession, user: User, post_id: uuid.UUID, like: bool
) -> LikeResponse:
    post = await get_visible_post(session, post_id, user)
    post.likes = _toggle(post.likes, user, like, "Post")
    await post.save(session)

    if like:
        await notify(
            session,
            [post.author_id],
            "like",
            f"{user.name} liked your post",
            related_type=EntityKind.POST,
            related_id=post.id,
            sender_id=user.id,
        )
    return LikeResponse(likes=post.likes, like_count=post.like_count, is_liked=like)


# ── Comments ──────────────────────────────────────────────────────────────────

async def _get_comment(session: AsyncSession, post: Post, comment_id: uuid.UUID) -> Comment:
    comment = await Comment.get_by_id(session, comment_id)
    if not comment or comment.post_id != post.id:
        raise ResourceNotFoundException(f"Comment not found with id {comment_id}")
    return comment


async def list_comments(
    session: AsyncSession, viewer: Optional[User], post_id: uuid.UUID, params: PageParams
) -> Tuple[List[CommentResponse], int]:
    post = await get_visible_post(session, post_id, viewer)
    rows, total = await Comment.paginate(
        session, page=params.page, limit=params.limit, sort=params.sort, default_sort="created_at",
        post_id=post.id,
    )
    return await serialize_comments(session, rows, viewer), total


async def add_comment(
    session: AsyncSession, user: User, post_id: uuid.UUID, data: CommentCreate
) -> Comment:
    post = await get_visible_post(session, post_id, user)
    comment = await Comment.create(db=session, post_id=post.id, author_id=user.id, content=data.content)

    await notify(
        session,
        [post.author_id],
        "comment",
        f"{user.name} commented on your post",
        related_type=EntityKind.POST,
        related_id=post.id,
        sender_id=user.id,
    )
    return comment


async def update_comment(
    session: AsyncSession, user: User, post_id: uuid.UUID, comment_id: uuid.UUID, data: CommentCreate
) -> Comment:
    post = await get_post_or_404(session, post_id)
    comment = await _get_comment(session, post, comment_id)
    ensure_owner(user, comment, "author_id", detail="Not authorized to update this comment")
    comment.content = data.content
    return await comment.save(session)


async def delete_comment(
    session: AsyncSession, user: User, post_id: uuid.UUID, comment_id: uuid.UUID
) -> None:
    """Comment author, post author or admin."""
    post = await get_post_or_404(session, post_id)
    comment = await _get_comment(session, post, comment_id)
    if not (is_owner(user, comment, "author_id") or is_owner(user, post, "author_id") or is_admin(user)):
        raise PermissionDeniedException("Not authorized to delete this comment")
    await comment.delete(session)


async def set_comment_like(
    session: AsyncSession, user: User, post_id: uuid.UUID, comment_id: uuid.UUID, like: bool
) -> LikeResponse:
    post = await get_visible_post(session, post_id, user)
    comment = await _get_comment(session, post, comment_id)
    comment.likes = _toggle(comment.likes, user, like, "Comment")
    await comment.save(session)

    if like:
        await notify(
            session,
            [comment.author_id],
            "like",
            f"{user.name} liked your comment",
            related_type=EntityKind.COMMENT,
            related_id=comment.id,
            sender_id=user.id,
        )
    return LikeResponse(likes=comment.likes, like_count=comment.like_count, is_liked=like)
