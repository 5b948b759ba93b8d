from typing import Optional, List, Literal
from datetime import datetime, timezone

from pydantic import field_validator

from familyhub.schemas.base import CamelModel, UserSummary

Category = Literal["general", "birthday", "holiday", "appointment", "social", "other"]


# ---------------------------------------------------------
# CREATE / UPDATE
# ---------------------------------------------------------
class EventCreate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    location: Optional[dict] = None
    category: Optional[Category] = None

    recurring: Optional[dict] = None
    reminders: Optional[List[dict]] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def as_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Stored columns are naive UTC
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class EventUpdate(EventCreate):
    pass


# ---------------------------------------------------------
# ATTENDANCE / INVITATIONS
# ---------------------------------------------------------
class AttendanceUpdate(CamelModel):
    status: Optional[str] = None
    user_id: Optional[str] = None


class InvitationCreate(CamelModel):
    user_id: str
    message: Optional[str] = None


class InvitationAnswer(CamelModel):
    status: Optional[str] = None


# ---------------------------------------------------------
# OUTPUT
# ---------------------------------------------------------
class AttendeeOut(CamelModel):
    id: str
    event_id: str
    user_id: str
    status: str
    updated_at: Optional[datetime] = None

    user: Optional[UserSummary] = None


class InvitationOut(CamelModel):
    id: str
    event_id: str
    user_id: str
    invited_by: str
    message: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    user: Optional[UserSummary] = None


class EventOut(CamelModel):
    id: str
    family_id: str

    title: str
    description: Optional[str] = None

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    location: Optional[dict] = None
    category: str
    recurring: Optional[dict] = None
    reminders: Optional[List[dict]] = None

    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EventDetailOut(EventOut):
    attendees: List[AttendeeOut] = []
