import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from familyhub.auth import get_current_user
from familyhub.core.access import (
    is_admin_of_post_family,
    is_valid_uuid,
    require_event_access,
    require_family_access,
    require_member,
    require_post_access,
    resolve_event,
    resolve_family,
    resolve_post,
)
from familyhub.core.cascades import delete_posts
from familyhub.database import get_db
from familyhub.models.comment import Comment
from familyhub.models.like import Like, LikeTarget
from familyhub.models.post import Post, PostEvent, PostFamily
from familyhub.models.user import User
from familyhub.schemas.post_schema import (
    CommentCreate,
    CommentOut,
    LikeRequest,
    PostCreate,
    PostDetailOut,
    PostOut,
    PostUpdate,
)
from familyhub.utils.pagination import page_body, paginate

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Posts"])

MAX_COMMENT_LENGTH = 1000


# --------------------------------------------------
# HELPERS
# --------------------------------------------------
def _unique(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))


def _link_post(db: Session, post_id: str, family_ids: list[str], event_ids: list[str]) -> None:
    for family_id in family_ids:
        db.add(PostFamily(post_id=post_id, family_id=family_id))
    for event_id in event_ids:
        db.add(PostEvent(post_id=post_id, event_id=event_id))


def _likes_count(db: Session, target: LikeTarget) -> int:
    return db.query(Like).filter(*Like.for_target(target)).count()


def _post_detail(db: Session, post: Post, user_id: str) -> PostDetailOut:
    target = LikeTarget.post(post.id)

    mine = (
        db.query(Like)
        .filter(*Like.for_target(target), Like.user_id == user_id)
        .first()
    )

    comments = (
        db.query(Comment)
        .filter(Comment.post_id == post.id, Comment.parent_id.is_(None))
        .order_by(Comment.created_at.desc())
        .all()
    )

    return PostDetailOut(
        **PostOut.model_validate(post).model_dump(),
        likes_count=_likes_count(db, target),
        user_liked=mine is not None,
        user_reaction=mine.reaction if mine else None,
        comments=[CommentOut.model_validate(c) for c in comments],
    )


# --------------------------------------------------
# CREATE POST
# --------------------------------------------------
@router.post("/posts", status_code=201)
def create_post(
    payload: PostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    content = (payload.content or "").strip()
    if not content:
        raise HTTPException(400, "Please provide post content")

    family_ids = _unique(payload.family_ids)
    if not family_ids:
        raise HTTPException(400, "Please select at least one family")

    event_ids = _unique(payload.event_ids)

    require_family_access(db, family_ids, current_user.id)
    require_event_access(db, event_ids, current_user.id)

    post = Post(
        content=content,
        media_urls=payload.media_urls,
        type=payload.type,
        privacy=payload.privacy,
        tags=payload.tags,
        location=payload.location,
        created_by=current_user.id,
    )
    db.add(post)
    db.flush()

    _link_post(db, post.id, family_ids, event_ids)

    db.commit()
    db.refresh(post)

    log.info("Post %s created by %s in %d families", post.id, current_user.id, len(family_ids))
    return {"success": True, "post": PostOut.model_validate(post)}


# --------------------------------------------------
# SINGLE POST
# --------------------------------------------------
@router.get("/posts/{post_id}")
def get_post(
    post_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = resolve_post(db, post_id)
    require_post_access(db, post, current_user.id, "Not authorized to view this post")

    return {"success": True, "post": _post_detail(db, post, current_user.id)}


@router.put("/posts/{post_id}")
def update_post(
    post_id: str,
    payload: PostUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = resolve_post(db, post_id)

    if post.created_by != current_user.id:
        raise HTTPException(403, "Not authorized to update this post")

    data = payload.model_dump(exclude_unset=True)

    if "content" in data:
        content = (data["content"] or "").strip()
        if not content:
            raise HTTPException(400, "Please provide post content")
        post.content = content

    for field in ("media_urls", "type", "privacy", "tags", "location"):
        if field in data and (data[field] is not None or field == "location"):
            setattr(post, field, data[field])

    # --------------------------------------------------
    # Associations are replaced wholesale when provided
    # --------------------------------------------------
    if payload.family_ids is not None:
        family_ids = _unique(payload.family_ids)
        if not family_ids:
            raise HTTPException(400, "Please select at least one family")
        require_family_access(db, family_ids, current_user.id)

        db.query(PostFamily).filter(PostFamily.post_id == post.id).delete(synchronize_session=False)
        _link_post(db, post.id, family_ids, [])

    if payload.event_ids is not None:
        event_ids = _unique(payload.event_ids)
        require_event_access(db, event_ids, current_user.id)

        db.query(PostEvent).filter(PostEvent.post_id == post.id).delete(synchronize_session=False)
        _link_post(db, post.id, [], event_ids)

    db.commit()
    db.refresh(post)

    return {"success": True, "post": PostOut.model_validate(post)}


@router.delete("/posts/{post_id}")
def delete_post(
    post_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = resolve_post(db, post_id)

    allowed = post.created_by == current_user.id or is_admin_of_post_family(db, post.id, current_user.id)
    if not allowed:
        raise HTTPException(403, "Not authorized to delete this post")

    delete_posts(db, [post.id])
    db.commit()

    log.info("Post %s deleted by %s", post_id, current_user.id)
    return {"success": True, "message": "Post deleted successfully"}


# --------------------------------------------------
# LIKES
# --------------------------------------------------
@router.post("/posts/{post_id}/like")
def like_post(
    post_id: str,
    payload: LikeRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = resolve_post(db, post_id)
    require_post_access(db, post, current_user.id, "Not authorized to like this post")

    reaction = payload.reaction if payload else "like"
    target = LikeTarget.post(post.id)

    existing = (
        db.query(Like)
        .filter(*Like.for_target(target), Like.user_id == current_user.id)
        .first()
    )

    if existing and existing.reaction == reaction:
        # Same reaction again toggles it off
        db.delete(existing)
        db.commit()
        return {
            "success": True,
            "message": "Reaction removed",
            "isLiked": False,
            "reaction": None,
            "likesCount": _likes_count(db, target),
        }

    if existing:
        existing.reaction = reaction
        message = "Reaction updated"
    else:
        db.add(Like(
            user_id=current_user.id,
            target_type=target.kind,
            target_id=target.id,
            reaction=reaction,
        ))
        message = "Post liked"

    db.commit()

    return {
        "success": True,
        "message": message,
        "isLiked": True,
        "reaction": reaction,
        "likesCount": _likes_count(db, target),
    }


# --------------------------------------------------
# COMMENTS
# --------------------------------------------------
@router.post("/posts/{post_id}/comments", status_code=201)
def add_comment(
    post_id: str,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = resolve_post(db, post_id)
    require_post_access(db, post, current_user.id, "Not authorized to comment on this post")

    content = (payload.content or "").strip()
    if not content:
        raise HTTPException(400, "Please provide comment content")
    if len(content) > MAX_COMMENT_LENGTH:
        raise HTTPException(400, f"Comment cannot be more than {MAX_COMMENT_LENGTH} characters")

    if payload.parent_id:
        parent = None
        if is_valid_uuid(payload.parent_id):
            parent = db.query(Comment).filter(
                Comment.id == payload.parent_id,
                Comment.post_id == post.id,
            ).first()
        if not parent:
            raise HTTPException(400, "Parent comment not found on this post")

    comment = Comment(
        post_id=post.id,
        user_id=current_user.id,
        content=content,
        media_url=payload.media_url,
        parent_id=payload.parent_id or None,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    return {"success": True, "comment": CommentOut.model_validate(comment)}


@router.get("/posts/{post_id}/comments")
def get_comments(
    post_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = resolve_post(db, post_id)
    require_post_access(db, post, current_user.id, "Not authorized to view comments on this post")

    query = (
        db.query(Comment)
        .filter(Comment.post_id == post.id, Comment.parent_id.is_(None))
        .order_by(Comment.created_at.desc())
    )
    comments, total, total_pages = paginate(query, page, limit)

    return page_body(
        "comments",
        [CommentOut.model_validate(c) for c in comments],
        total, total_pages, page,
    )


# --------------------------------------------------
# FAMILY / EVENT FEEDS
# --------------------------------------------------
@router.get("/families/{family_id}/posts")
def get_family_posts(
    family_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    family = resolve_family(db, family_id)
    require_member(db, family.id, current_user.id, detail="Not authorized to view posts in this family")

    query = (
        db.query(Post)
        .join(PostFamily, PostFamily.post_id == Post.id)
        .filter(PostFamily.family_id == family.id)
    )
    if type:
        query = query.filter(Post.type == type)

    posts, total, total_pages = paginate(query.order_by(Post.created_at.desc()), page, limit)

    return page_body(
        "posts",
        [PostOut.model_validate(p) for p in posts],
        total, total_pages, page,
    )


@router.get("/events/{event_id}/posts")
def get_event_posts(
    event_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    event = resolve_event(db, event_id)
    require_member(db, event.family_id, current_user.id, detail="Not authorized to view posts for this event")

    query = (
        db.query(Post)
        .join(PostEvent, PostEvent.post_id == Post.id)
        .filter(PostEvent.event_id == event.id)
        .order_by(Post.created_at.desc())
    )
    posts, total, total_pages = paginate(query, page, limit)

    return page_body(
        "posts",
        [PostOut.model_validate(p) for p in posts],
        total, total_pages, page,
    )
