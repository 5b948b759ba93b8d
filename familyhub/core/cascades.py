"""
Bulk removal of dependent rows.

Parent relationships are read-only, so deleting a family, event, post or
comment never cascades through the ORM. These helpers delete children
before parents with bulk queries; callers own the commit.
"""

from sqlalchemy.orm import Session

from familyhub.models.comment import Comment
from familyhub.models.event import Event
from familyhub.models.event_attendee import EventAttendee
from familyhub.models.event_invitation import EventInvitation
from familyhub.models.family import Family
from familyhub.models.family_member import FamilyMember
from familyhub.models.like import Like
from familyhub.models.post import Post, PostEvent, PostFamily


def _ids(query) -> list[str]:
    return [row_id for (row_id,) in query.all()]


# --------------------------------------------------
# COMMENTS
# --------------------------------------------------
def delete_comments(db: Session, comment_ids: list[str]) -> None:
    """Delete comments, every reply below them and the likes on all of them."""
    doomed = set(comment_ids)
    frontier = set(comment_ids)

    while frontier:
        children = set(_ids(
            db.query(Comment.id).filter(Comment.parent_id.in_(frontier))
        ))
        frontier = children - doomed
        doomed |= frontier

    if not doomed:
        return

    db.query(Like).filter(
        Like.target_type == "comment",
        Like.target_id.in_(doomed),
    ).delete(synchronize_session=False)

    db.query(Comment).filter(Comment.id.in_(doomed)).delete(synchronize_session=False)


# --------------------------------------------------
# POSTS
# --------------------------------------------------
def delete_posts(db: Session, post_ids: list[str]) -> None:
    if not post_ids:
        return

    comment_ids = _ids(db.query(Comment.id).filter(Comment.post_id.in_(post_ids)))
    delete_comments(db, comment_ids)

    db.query(Like).filter(
        Like.target_type == "post",
        Like.target_id.in_(post_ids),
    ).delete(synchronize_session=False)

    db.query(PostFamily).filter(PostFamily.post_id.in_(post_ids)).delete(synchronize_session=False)
    db.query(PostEvent).filter(PostEvent.post_id.in_(post_ids)).delete(synchronize_session=False)
    db.query(Post).filter(Post.id.in_(post_ids)).delete(synchronize_session=False)


# --------------------------------------------------
# EVENTS
# --------------------------------------------------
def delete_events(db: Session, event_ids: list[str]) -> None:
    if not event_ids:
        return

    db.query(EventAttendee).filter(EventAttendee.event_id.in_(event_ids)).delete(synchronize_session=False)
    db.query(EventInvitation).filter(EventInvitation.event_id.in_(event_ids)).delete(synchronize_session=False)
    db.query(PostEvent).filter(PostEvent.event_id.in_(event_ids)).delete(synchronize_session=False)
    db.query(Event).filter(Event.id.in_(event_ids)).delete(synchronize_session=False)


# --------------------------------------------------
# FAMILIES
# --------------------------------------------------
def delete_family(db: Session, family_id: str) -> None:
    """Family, its members, its events and its post associations. Posts stay."""
    delete_events(db, _ids(db.query(Event.id).filter(Event.family_id == family_id)))

    db.query(PostFamily).filter(PostFamily.family_id == family_id).delete(synchronize_session=False)
    db.query(FamilyMember).filter(FamilyMember.family_id == family_id).delete(synchronize_session=False)
    db.query(Family).filter(Family.id == family_id).delete(synchronize_session=False)
