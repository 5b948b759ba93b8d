"""
Membership and ownership lookups shared by every router.

Every check follows the same shape: look up the membership row scoped to
(family, user[, role]); a missing target is a 404, a missing membership
is a 403.
"""

import uuid

from fastapi import HTTPException
from sqlalchemy.orm import Session

from familyhub.models.event import Event
from familyhub.models.event_invitation import EventInvitation
from familyhub.models.family import Family
from familyhub.models.family_member import FamilyMember
from familyhub.models.post import Post, PostFamily


def is_valid_uuid(value: str | None) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


# --------------------------------------------------
# MEMBERSHIP
# --------------------------------------------------
def get_membership(
    db: Session,
    family_id: str,
    user_id: str,
    role: str | None = None,
) -> FamilyMember | None:
    query = db.query(FamilyMember).filter(
        FamilyMember.family_id == family_id,
        FamilyMember.user_id == user_id,
    )
    if role:
        query = query.filter(FamilyMember.role == role)
    return query.first()


def require_member(
    db: Session,
    family_id: str,
    user_id: str,
    detail: str = "Not authorized to access this family",
) -> FamilyMember:
    member = get_membership(db, family_id, user_id)
    if not member:
        raise HTTPException(403, detail)
    return member


def require_admin(
    db: Session,
    family_id: str,
    user_id: str,
    detail: str = "Admin only",
) -> FamilyMember:
    member = get_membership(db, family_id, user_id, role="admin")
    if not member:
        raise HTTPException(403, detail)
    return member


def count_admins(db: Session, family_id: str) -> int:
    return db.query(FamilyMember).filter(
        FamilyMember.family_id == family_id,
        FamilyMember.role == "admin",
    ).count()


# --------------------------------------------------
# RESOLVERS (404)
# --------------------------------------------------
def resolve_family(db: Session, family_id: str) -> Family:
    family = None
    if is_valid_uuid(family_id):
        family = db.query(Family).filter(Family.id == family_id).first()
    if not family:
        raise HTTPException(404, "Family not found")
    return family


def resolve_event(db: Session, event_id: str) -> Event:
    event = None
    if is_valid_uuid(event_id):
        event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise HTTPException(404, "Event not found")
    return event


def resolve_post(db: Session, post_id: str) -> Post:
    post = None
    if is_valid_uuid(post_id):
        post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise HTTPException(404, "Post not found")
    return post


# --------------------------------------------------
# EVENTS
# --------------------------------------------------
def is_event_manager(db: Session, event: Event, user_id: str) -> bool:
    """Creator of the event or admin of its family."""
    if event.created_by == user_id:
        return True
    return get_membership(db, event.family_id, user_id, role="admin") is not None


def has_accepted_invitation(db: Session, event_id: str, user_id: str) -> bool:
    return (
        db.query(EventInvitation)
        .filter(
            EventInvitation.event_id == event_id,
            EventInvitation.user_id == user_id,
            EventInvitation.status == "accepted",
        )
        .first()
        is not None
    )


def can_reach_event(db: Session, event: Event, user_id: str) -> bool:
    """Family member, or outsider holding an accepted invitation."""
    if get_membership(db, event.family_id, user_id):
        return True
    return has_accepted_invitation(db, event.id, user_id)


# --------------------------------------------------
# POSTS
# --------------------------------------------------
def post_family_ids(db: Session, post_id: str) -> list[str]:
    rows = db.query(PostFamily.family_id).filter(PostFamily.post_id == post_id).all()
    return [family_id for (family_id,) in rows]


def can_view_post(db: Session, post: Post, user_id: str) -> bool:
    if post.privacy == "public" or post.created_by == user_id:
        return True

    family_ids = post_family_ids(db, post.id)
    if not family_ids:
        return False

    return (
        db.query(FamilyMember)
        .filter(
            FamilyMember.user_id == user_id,
            FamilyMember.family_id.in_(family_ids),
        )
        .first()
        is not None
    )


def require_post_access(db: Session, post: Post, user_id: str, detail: str) -> None:
    if not can_view_post(db, post, user_id):
        raise HTTPException(403, detail)


def is_admin_of_post_family(db: Session, post_id: str, user_id: str) -> bool:
    return (
        db.query(FamilyMember)
        .join(PostFamily, PostFamily.family_id == FamilyMember.family_id)
        .filter(
            PostFamily.post_id == post_id,
            FamilyMember.user_id == user_id,
            FamilyMember.role == "admin",
        )
        .first()
        is not None
    )


def require_family_access(db: Session, family_ids: list[str], user_id: str) -> None:
    """Caller must belong to every family in ``family_ids``."""
    wanted = set(family_ids)
    if not wanted:
        return

    if not all(is_valid_uuid(f) for f in wanted):
        raise HTTPException(
            403, "You do not have access to one or more of the specified families"
        )

    found = db.query(FamilyMember).filter(
        FamilyMember.user_id == user_id,
        FamilyMember.family_id.in_(wanted),
    ).count()

    if found != len(wanted):
        raise HTTPException(
            403, "You do not have access to one or more of the specified families"
        )


def require_event_access(db: Session, event_ids: list[str], user_id: str) -> None:
    """Caller must belong to the family of every event in ``event_ids``."""
    for event_id in set(event_ids):
        event = resolve_event(db, event_id)
        if not get_membership(db, event.family_id, user_id):
            raise HTTPException(
                403, "You do not have access to one or more of the specified events"
            )
