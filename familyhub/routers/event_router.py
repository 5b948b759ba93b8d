import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from familyhub.auth import get_current_user
from familyhub.core.access import (
    can_reach_event,
    get_membership,
    has_accepted_invitation,
    is_event_manager,
    is_valid_uuid,
    require_member,
    resolve_event,
    resolve_family,
)
from familyhub.core.cascades import delete_events
from familyhub.database import get_db
from familyhub.models.event import Event
from familyhub.models.event_attendee import RSVP_STATUSES, EventAttendee
from familyhub.models.event_invitation import INVITATION_ANSWERS, EventInvitation
from familyhub.models.family_member import FamilyMember
from familyhub.models.user import User
from familyhub.schemas.event_schema import (
    AttendanceUpdate,
    AttendeeOut,
    EventCreate,
    EventDetailOut,
    EventOut,
    EventUpdate,
    InvitationAnswer,
    InvitationCreate,
    InvitationOut,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Events"])


# ---------------------------------------------------------
# HELPERS
# ---------------------------------------------------------
def _clean_title(title: str | None) -> str:
    title = (title or "").strip()
    if not title:
        raise HTTPException(400, "Please provide an event title")
    if not 2 <= len(title) <= 100:
        raise HTTPException(400, "Event title must be between 2 and 100 characters")
    return title


def _check_dates(start: datetime | None, end: datetime | None) -> None:
    if start and end and end <= start:
        raise HTTPException(400, "End date must be after start date")


def _attendees(db: Session, event_id: str) -> list[EventAttendee]:
    return (
        db.query(EventAttendee)
        .filter(EventAttendee.event_id == event_id)
        .order_by(EventAttendee.created_at)
        .all()
    )


def _set_attendance(db: Session, event_id: str, user_id: str, status: str) -> EventAttendee:
    """Upsert the single attendee row for (event, user)."""
    attendee = db.query(EventAttendee).filter(
        EventAttendee.event_id == event_id,
        EventAttendee.user_id == user_id,
    ).first()

    if attendee:
        attendee.status = status
    else:
        attendee = EventAttendee(event_id=event_id, user_id=user_id, status=status)
        db.add(attendee)

    return attendee


def _require_manager(db: Session, event: Event, user_id: str, detail: str) -> None:
    if not is_event_manager(db, event, user_id):
        raise HTTPException(403, detail)


def _event_detail(db: Session, event: Event) -> EventDetailOut:
    return EventDetailOut(
        **EventOut.model_validate(event).model_dump(),
        attendees=[AttendeeOut.model_validate(a) for a in _attendees(db, event.id)],
    )


# ---------------------------------------------------------
# FAMILY EVENTS
# ---------------------------------------------------------
@router.post("/families/{family_id}/events", status_code=201)
def create_event(
    family_id: str,
    payload: EventCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    family = resolve_family(db, family_id)
    require_member(db, family.id, current_user.id, detail="Not authorized to create events in this family")

    title = _clean_title(payload.title)
    if not payload.start_date or not payload.end_date:
        raise HTTPException(400, "Please provide start and end dates")
    _check_dates(payload.start_date, payload.end_date)

    event = Event(
        family_id=family.id,
        title=title,
        description=payload.description,
        start_date=payload.start_date,
        end_date=payload.end_date,
        location=payload.location,
        category=payload.category or "general",
        recurring=payload.recurring,
        reminders=payload.reminders,
        created_by=current_user.id,
    )
    db.add(event)
    db.flush()

    # One attendee row per family member
    member_ids = [
        uid for (uid,) in db.query(FamilyMember.user_id).filter(FamilyMember.family_id == family.id).all()
    ]
    for uid in member_ids:
        db.add(EventAttendee(
            event_id=event.id,
            user_id=uid,
            status="attending" if uid == current_user.id else "pending",
        ))

    db.commit()
    db.refresh(event)

    log.info("Event %s created in family %s", event.id, family.id)
    return {"success": True, "event": _event_detail(db, event)}


@router.get("/families/{family_id}/events")
def get_family_events(
    family_id: str,
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    category: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    family = resolve_family(db, family_id)
    require_member(db, family.id, current_user.id, detail="Not authorized to view events in this family")

    query = db.query(Event).filter(Event.family_id == family.id)

    if start_date:
        query = query.filter(Event.start_date >= start_date)
    if end_date:
        query = query.filter(Event.start_date <= end_date)
    if category:
        query = query.filter(Event.category == category)

    events = query.order_by(Event.start_date.asc()).all()

    return {
        "success": True,
        "count": len(events),
        "events": [EventOut.model_validate(e) for e in events],
    }


# ---------------------------------------------------------
# MY EVENTS
# ---------------------------------------------------------
@router.get("/events")
def get_my_events(
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    attending = select(EventAttendee.event_id).where(EventAttendee.user_id == current_user.id)

    query = db.query(Event).filter(
        (Event.id.in_(attending)) | (Event.created_by == current_user.id)
    )

    if start_date:
        query = query.filter(Event.start_date >= start_date)
    if end_date:
        query = query.filter(Event.start_date <= end_date)

    events = query.order_by(Event.start_date.asc()).all()

    return {
        "success": True,
        "count": len(events),
        "events": [EventOut.model_validate(e) for e in events],
    }


# ---------------------------------------------------------
# SINGLE EVENT
# ---------------------------------------------------------
@router.get("/events/{event_id}")
def get_event(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    event = resolve_event(db, event_id)
    require_member(db, event.family_id, current_user.id, detail="Not authorized to view this event")

    return {"success": True, "event": _event_detail(db, event)}


@router.put("/events/{event_id}")
def update_event(
    event_id: str,
    payload: EventUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    event = resolve_event(db, event_id)
    _require_manager(db, event, current_user.id, "Not authorized to update this event")

    data = payload.model_dump(exclude_unset=True)

    if "title" in data:
        data["title"] = _clean_title(data["title"])

    _check_dates(data.get("start_date", event.start_date), data.get("end_date", event.end_date))

    for field, value in data.items():
        # Required columns are never cleared
        if value is None and field in ("title", "start_date", "category"):
            continue
        setattr(event, field, value)

    db.commit()
    db.refresh(event)

    return {"success": True, "event": EventOut.model_validate(event)}


@router.delete("/events/{event_id}")
def delete_event(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    event = resolve_event(db, event_id)
    _require_manager(db, event, current_user.id, "Not authorized to delete this event")

    delete_events(db, [event.id])
    db.commit()

    log.info("Event %s deleted by %s", event_id, current_user.id)
    return {"success": True, "message": "Event deleted successfully"}


# ---------------------------------------------------------
# ATTENDEES
# ---------------------------------------------------------
@router.post("/events/{event_id}/attendees")
def update_attendance(
    event_id: str,
    payload: AttendanceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if payload.status not in RSVP_STATUSES:
        raise HTTPException(400, "Invalid status. Must be attending, maybe or declined")

    event = resolve_event(db, event_id)

    if not can_reach_event(db, event, current_user.id):
        raise HTTPException(403, "Not authorized to update attendance for this event")

    target_id = payload.user_id or current_user.id

    if target_id != current_user.id:
        _require_manager(db, event, current_user.id, "Not authorized to update other users' attendance")

        target_ok = is_valid_uuid(target_id) and (
            get_membership(db, event.family_id, target_id) is not None
            or has_accepted_invitation(db, event.id, target_id)
        )
        if not target_ok:
            raise HTTPException(400, "User is not a member of this family or invited to this event")

    attendee = _set_attendance(db, event.id, target_id, payload.status)
    db.commit()
    db.refresh(attendee)

    return {"success": True, "attendee": AttendeeOut.model_validate(attendee)}


@router.get("/events/{event_id}/attendees")
def get_attendees(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    event = resolve_event(db, event_id)
    require_member(db, event.family_id, current_user.id, detail="Not authorized to view attendees for this event")

    attendees = _attendees(db, event.id)
    return {
        "success": True,
        "count": len(attendees),
        "attendees": [AttendeeOut.model_validate(a) for a in attendees],
    }


# ---------------------------------------------------------
# INVITATIONS
# ---------------------------------------------------------
@router.post("/events/{event_id}/invitations", status_code=201)
def invite_to_event(
    event_id: str,
    payload: InvitationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    event = resolve_event(db, event_id)
    _require_manager(db, event, current_user.id, "Not authorized to invite users to this event")

    invitee = None
    if is_valid_uuid(payload.user_id):
        invitee = db.query(User).filter(User.id == payload.user_id).first()
    if not invitee:
        raise HTTPException(404, "User not found")

    if get_membership(db, event.family_id, invitee.id):
        raise HTTPException(400, "User is already a member of this family")

    existing = db.query(EventInvitation).filter(
        EventInvitation.event_id == event.id,
        EventInvitation.user_id == invitee.id,
    ).first()
    if existing:
        raise HTTPException(400, "User has already been invited to this event")

    invitation = EventInvitation(
        event_id=event.id,
        user_id=invitee.id,
        invited_by=current_user.id,
        message=payload.message,
        status="pending",
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)

    log.info("User %s invited to event %s", invitee.id, event.id)
    return {"success": True, "invitation": InvitationOut.model_validate(invitation)}


@router.get("/events/{event_id}/invitations")
def get_invitations(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    event = resolve_event(db, event_id)
    _require_manager(db, event, current_user.id, "Not authorized to view invitations for this event")

    invitations = (
        db.query(EventInvitation)
        .filter(EventInvitation.event_id == event.id)
        .order_by(EventInvitation.created_at.desc())
        .all()
    )
    return {
        "success": True,
        "count": len(invitations),
        "invitations": [InvitationOut.model_validate(i) for i in invitations],
    }


@router.put("/events/{event_id}/invitations/{invitation_id}")
def respond_to_invitation(
    event_id: str,
    invitation_id: str,
    payload: InvitationAnswer,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if payload.status not in INVITATION_ANSWERS:
        raise HTTPException(400, "Invalid status. Must be accepted or declined")

    event = resolve_event(db, event_id)

    invitation = None
    if is_valid_uuid(invitation_id):
        invitation = db.query(EventInvitation).filter(
            EventInvitation.id == invitation_id,
            EventInvitation.event_id == event.id,
        ).first()
    if not invitation:
        raise HTTPException(404, "Invitation not found")

    if invitation.user_id != current_user.id:
        raise HTTPException(403, "Not authorized to respond to this invitation")

    invitation.status = payload.status

    if payload.status == "accepted":
        _set_attendance(db, event.id, current_user.id, "attending")

    db.commit()
    db.refresh(invitation)

    return {"success": True, "invitation": InvitationOut.model_validate(invitation)}
